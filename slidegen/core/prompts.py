from langchain_core.prompts import PromptTemplate

# --- Research text -> slide XML ---
SLIDES_PROMPT = PromptTemplate.from_template(
    "Research Text:\n"
    "---\n"
    "{research_text}\n"
    "---\n\n"
    "Based on the above research text, generate exactly {slide_count} slides for a presentation.\n"
    "Format the output STRICTLY as XML, starting with <slides> and containing {slide_count} <slide> elements.\n"
    "Each <slide> element MUST contain ONLY <title>, <text>, and <imageDescription> tags.\n"
    "The <text> should be a few talking points, brief concise jumping off bullet points for the speaker, "
    "and include any interesting facts or quotes from the research.\n"
    "The <imageDescription> should be a very detailed visual prompt, describing an ornate image slide "
    "with the text as brief bullet points naturally embedded in the scene, for example the text can be "
    "on billboards, television screens, chalkboards, slogans on street signs or shirts, etc. "
    "The images should be based on the slide's content and follow the style of the image prompt, "
    "telling the story of the slide. Do not add any commentary before or after the XML structure.\n\n"
    "Be extremely detailed, and try to describe where in the image any bullet points or text go "
    "and be extremely specific in every artistic direction.\n\n"
    "IMPORTANT: Ensure all XML is valid with no special characters or entities that could cause parsing errors.\n\n"
    "XML Output:"
)
