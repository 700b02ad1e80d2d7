from django.db import connections
from django.http import JsonResponse
from django.utils import timezone


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1), 'timestamp': timezone.now().isoformat()})
    except Exception as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)


def api_index(request):
    return JsonResponse({
        'ok': True,
        'message': 'Pharmacy Back-Office API',
        'version': '1.0.0',
        'endpoints': {
            'patients': '/api/patients',
            'prescriptions': '/api/prescriptions',
            'medications': '/api/medications',
            'wallets': '/api/wallets',
            'appointments': '/api/appointments',
        },
        'documentation': '/swagger/',
    })


def route_not_found(request, exception=None):
    return JsonResponse(
        {'ok': False, 'error': {'code': 'not_found', 'message': f'Route {request.path} not found'}},
        status=404,
    )
