import re

_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    text = (text or "").lower()
    text = _NON_WORD.sub("", text)
    return _SPACES.sub(" ", text).strip()


def jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity of the word sets of two texts, after normalization.

    Two texts without any word score 0.0.
    """
    words1 = set(normalize_text(text1).split())
    words2 = set(normalize_text(text2).split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)
