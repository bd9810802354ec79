from booktrack.models.book import Book, BookImage

__all__ = [
    "Book",
    "BookImage",
]
