from markupsafe import Markup, escape


def clean_text(raw, max_length: int) -> str:
    """Strip markup from user text, escape what is left and truncate."""
    if not isinstance(raw, str):
        return ''
    stripped = Markup(raw.strip()).striptags()
    return str(escape(stripped))[:max_length]
