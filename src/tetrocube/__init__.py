"""TetroCube: same-color fusion block puzzle engine, Gymnasium env and pygame front-end."""

__version__ = "0.1.0"
