"""Page through a Protean queryset without loading the table in one read."""

PAGE_SIZE = 500


def drain(queryset, page_size=None):
    """Yield every match of ``queryset`` page by page."""
    size = page_size or PAGE_SIZE
    offset = 0
    while True:
        page = queryset.offset(offset).limit(size).all().items
        yield from page
        if len(page) < size:
            return
        offset += size
