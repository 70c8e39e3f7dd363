from llmgrep.constants import CHUNK_SIZE


def chunk(text: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split text into consecutive slices of at most `size` characters.

    The slices concatenate back to `text` exactly. Empty text gives one empty chunk.
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    if len(text) <= size:
        return [text]
    return [text[i : i + size] for i in range(0, len(text), size)]
