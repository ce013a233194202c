"""
Path normalization for generated file names.

Models emit the same file as "src/App.tsx", "./src/App.tsx" or
"/src/App.tsx". Collections are keyed by the normalized form so those
spellings merge into one entry.
"""


def normalize_path(path: str) -> str:
    """
    Strip at most one leading "./" or "/" from a file path.

    Exactly one rule applies, in priority order. Nothing else is touched:
    no case folding, no collapsing of interior ".." or "//". The result
    is a fixed point for every path that does not start with a doubled
    prefix such as "././" or "//".

    Examples:
        normalize_path("./a/b.ts")  -> "a/b.ts"
        normalize_path("/a/b.ts")   -> "a/b.ts"
        normalize_path("a/b.ts")    -> "a/b.ts"
    """
    if path.startswith('./'):
        return path[2:]
    if path.startswith('/'):
        return path[1:]
    return path
