import re

def tidy_variable_name(name: str) -> str:
    """
    Cleans up a string to be a suitable layer name by:
    - Replacing dashes, spaces, and other common separators with underscores.
    - Converting to lowercase.
    - Stripping leading/trailing underscores.
    - Ensuring no multiple consecutive underscores.

    Range rasters are keyed by their tidied file stem, e.g.
    "Gopherus morafkai.tif" -> "gopherus_morafkai".

    Args:
        name (str): The input string.

    Returns:
        str: The cleaned up string.
    """
    if not isinstance(name, str):
        raise TypeError(f"Input name must be a string, got {type(name)}")

    name = re.sub(r'[\s\-/\\.:;,()\[\]{}]', '_', name)
    name = name.lower()
    name = re.sub(r'[^a-z0-9_]', '', name)
    name = re.sub(r'_+', '_', name)
    name = name.strip('_')

    return name


def display_name(layer_name: str) -> str:
    """Turns a tidied layer name back into something readable for map legends."""
    return layer_name.replace("_", " ").strip().capitalize()
