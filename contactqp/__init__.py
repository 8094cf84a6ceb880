"""Contact classification, contact modes and a convex QP solver for quasi-static pushing."""

__version__ = "0.1.0"
__all__ = ["quadprog", "contact"]