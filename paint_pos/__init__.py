"""Paint store point-of-sale: catalog, stock, sales and customer accounts over SQLite."""

__version__ = "1.0.0"
