import re

NON_ALPHANUMERIC = re.compile(r'[^\w\s]|_')
WHITESPACE_RUN   = re.compile(r'\s+')

def normalize(text: str | None) -> str:
    """
    Canonicalizes a field value for comparison: lowercases, deletes every
    character that is not a letter, digit or whitespace, and collapses
    whitespace runs to single spaces.

    Deleting rather than blanking punctuation lets hyphenated identifiers
    compare equal to their bare form ('978-0-7432' -> '97807432').
    """
    if not text:
        return ''

    text = NON_ALPHANUMERIC.sub('', text.lower())
    return WHITESPACE_RUN.sub(' ', text).strip()
