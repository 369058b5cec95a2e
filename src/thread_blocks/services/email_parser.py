import re

from thread_blocks.services.document import TextBlock, parse_document


def html_to_text(html: str) -> str:
    # Minimal conversion; bodies are expected to be plain text in the common case.
    text = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = text.replace("&nbsp;", " ")
    text = text.replace("&lt;", "<")
    text = text.replace("&gt;", ">")
    text = text.replace("&quot;", '"')
    text = text.replace("&amp;", "&")
    return text


def extract_reply_text(raw_text: str) -> str:
    """Return the new part of a reply: everything before the first quote block."""
    body = (raw_text or "").replace("\r", "")
    leading: list[str] = []

    for segment in parse_document(body):
        if not isinstance(segment.block, TextBlock):
            break
        leading.append(segment.raw)

    kept: list[str] = []
    for line in "".join(leading).split("\n"):
        stripped = line.strip()
        if stripped.startswith(">"):
            break
        if re.match(r"^On .+ wrote:$", stripped):
            break
        kept.append(line.rstrip())

    text = "\n".join(kept).strip()
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text
