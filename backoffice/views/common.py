from rest_framework.response import Response

from ..services.wallets import to_money


def page_response(page, serializer, **extra) -> Response:
    body = {'ok': True, 'data': [serializer(item) for item in page.items], 'pagination': page.meta()}
    body.update(extra)
    return Response(body)


def money(value):
    """Render a monetary amount as a two-decimal string, ``None`` passes through."""
    return None if value is None else str(to_money(value))
