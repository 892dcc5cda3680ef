import asyncio
from typing import Any, Coroutine, List, Optional


async def run_concurrently(
    coroutines: List[Coroutine], max_concurrency: Optional[int] = None
) -> List[Any]:
    """
    주어진 코루틴들을 태스크로 동시에 실행하고 모두 끝날 때까지 기다립니다.

    Args:
        coroutines: 실행할 코루틴의 리스트
        max_concurrency: 동시에 실행할 최대 코루틴 수 (None 이면 제한 없음)

    Returns:
        입력 순서와 같은 순서의 결과 리스트. 예외는 결과 자리에 그대로 담깁니다.
    """
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def worker(coro):
        if semaphore is None:
            return await coro
        async with semaphore:
            return await coro

    tasks = [asyncio.create_task(worker(coro)) for coro in coroutines]
    return await asyncio.gather(*tasks, return_exceptions=True)
