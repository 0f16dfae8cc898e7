"""
prompt_builder.py

Builds the instruction sent to the LLM.

Two modes:
- Schema mode: the caller's schema definition is embedded verbatim
  and the model must fill exactly those fields.
- Inference mode: no schema, the model picks a sensible structure.

In both modes the model must answer with a bare JSON object.
"""

import json
from typing import Any, Optional

FORMAT_LABELS = {
    "json": "JSON",
    "md": "Markdown (rendered from your JSON object)",
}

SYSTEM_PROMPT = (
    "You are a document data extraction assistant. "
    "Respond only with a single valid JSON object."
)


def build_prompt(
    text: str,
    schema: Optional[Any] = None,
    output_format: str = "json",
) -> str:
    """
    Render the extraction prompt.

    Parameters:
    - text: text extracted from the uploaded document
    - schema: raw schema definition (None = inference mode)
    - output_format: "json" or "md", stated in the prompt

    Returns:
    - prompt string
    """

    label = FORMAT_LABELS.get(output_format, output_format)

    if schema is None:
        return f"""Given the document text below, identify the information it contains and
return it as a JSON object with a reasonable structure that you infer from the text.
Use short snake_case field names, nested objects for related fields and arrays for
repeated items. Use null for values that are not present.
Target output format: {label}.
Return a valid JSON object only. Do not add explanations or markdown formatting.

Document:
\"\"\"{text}\"\"\"
"""

    schema_string = json.dumps(schema, indent=2, ensure_ascii=False)
    return f"""Given the document text below, extract and return a JSON object with the following exact fields.
Do not include any additional fields, and use the property names and structure exactly as shown.
Each value must have the declared type. Values written as "A | B" must be one of the listed options.
If any optional data is not present in the text, return the field with null.
Target output format: {label}.
Return a valid JSON object only. Do not add explanations or markdown formatting.

Field schema:
{schema_string}

Document:
\"\"\"{text}\"\"\"
"""
