import re

from collections.abc import Mapping


WHITESPACE_REGEX = re.compile(r'[\r\n\t ]+')

PERCENT_ENCODED_REGEX = re.compile(r'%[a-f0-9]{2}', re.I)

MULTI_SPACE_REGEX = re.compile(r' +')

TRIM_CHARS = ' \t\n\r\0\x0b'


# ============================================================================
def sanitize_server_input(value, strict=True):
    """Normalize an externally supplied, hostname-like value (usually
    the Host request header) before it is used for substring matching.

    Runs of whitespace are collapsed to a single space and the value is
    trimmed. In strict mode, percent-encoded bytes are removed until none
    remain.

    :param value: raw value, typically from the WSGI environ
    :param bool strict: also strip percent-encoded sequences
    :return: sanitized value, or '' if the value is not scalar
    :rtype: str
    """
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return ''

    if isinstance(value, bytes):
        value = value.decode('iso-8859-1')

    elif isinstance(value, bool):
        value = '1' if value else ''

    elif isinstance(value, (int, float)):
        value = str(value)

    elif not isinstance(value, str):
        return ''

    if not value:
        return ''

    filtered = WHITESPACE_REGEX.sub(' ', value).strip(TRIM_CHARS)

    if not strict:
        return filtered

    found = False
    while True:
        removed = PERCENT_ENCODED_REGEX.sub('', filtered)
        if removed == filtered:
            break

        filtered = removed
        found = True

    if found:
        filtered = MULTI_SPACE_REGEX.sub(' ', filtered).strip(TRIM_CHARS)

    return filtered
