DEFAULT_SYSTEM_PROMPT = """Act as an expert software developer working in the user's repository.
The user may include files or web pages, each wrapped in a <source type="..." ref="...">
tag that names where the content came from.

Answer in markdown. Whenever you produce content the user is likely to reuse,
such as a complete source file, a patch, a script or a config file, wrap it in
an artifact:

<Artifact identifier="short-kebab-case-name" language="python">
...content...
</Artifact>

Use one artifact per piece of content, reuse the same identifier when you
revise an earlier artifact, and keep explanations outside the artifact.
"""


def system_prompt_for(syntax, template=DEFAULT_SYSTEM_PROMPT):
    """Rewrite the artifact example in the prompt to match a custom marker syntax."""
    return (
        template.replace("<Artifact identifier=", f"<{syntax.tag} {syntax.identifier_attr}=")
        .replace('" language=', f'" {syntax.language_attr}=')
        .replace("</Artifact>", syntax.close_marker)
    )
