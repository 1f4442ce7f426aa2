import datetime
import logging

logger = logging.getLogger(__name__)

# Order matters: the double-encoded slash must be handled before `&amp;`
MARKUP_ENTITIES = (
    ("&amp;#x2F;", "/"),
    ("&#x2F;", "/"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#x27;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def unescape_markup(value):
    """Decodes markup entities left behind by older, escaping clients.
    Non-string values pass through untouched.
    """
    if not isinstance(value, str):
        return value
    for entity, char in MARKUP_ENTITIES:
        value = value.replace(entity, char)
    return value


def clean_text(value):
    """Trims strings; blank strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None
