import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .exceptions import FulfillmentError, ValidationFailure
from .services import fulfillment, statistics

logger = logging.getLogger(__name__)


def _json(payload, status=200):
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def _request_payload(blood_request):
    return {
        'id': blood_request.pk,
        'title': blood_request.title,
        'description': blood_request.description,
        'bloodgroup': blood_request.bloodgroup,
        'units_required': blood_request.units_required,
        'fulfilled_units': blood_request.fulfilled_units,
        'urgency': blood_request.urgency,
        'hospital_name': blood_request.hospital_name,
        'city': blood_request.city,
        'required_date': blood_request.required_date,
        'status': blood_request.status,
        'owner_id': blood_request.owner_id,
        'created_at': blood_request.created_at,
    }


def _read_body(request):
    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'{}')
        except ValueError:
            raise ValidationFailure('Request body is not valid JSON')
        if not isinstance(payload, dict):
            raise ValidationFailure('Request body must be a JSON object')
        return payload
    return request.POST.dict()


def api_errors(view):
    """Translate fulfillment errors into the JSON error envelope."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except FulfillmentError as exc:
            logger.info('%s %s -> %s: %s', request.method, request.path, exc.status_code, exc.message)
            return _json({'success': False, 'message': exc.message, 'errors': exc.errors}, status=exc.status_code)

    return wrapper


@require_POST
@login_required
@api_errors
def request_create_view(request):
    blood_request = fulfillment.create_request(request.user, _read_body(request))
    return _json({'success': True, 'message': 'Blood request created', 'data': _request_payload(blood_request)}, status=201)


@require_GET
@login_required
@api_errors
def request_matching_donors_view(request, pk):
    candidates = fulfillment.find_matching_donors(pk)
    return _json({'success': True, 'data': [candidate.as_dict() for candidate in candidates]})


@require_POST
@login_required
@api_errors
def request_cancel_view(request, pk):
    blood_request = fulfillment.cancel_request(pk, actor=request.user)
    return _json({'success': True, 'message': 'Blood request cancelled', 'data': _request_payload(blood_request)})


@require_GET
@login_required
def request_statistics_view(request):
    return _json({'success': True, 'data': statistics.get_request_statistics()})


@require_GET
def urgent_requests_view(request):
    try:
        limit = int(request.GET.get('limit', 5))
    except ValueError:
        limit = 5
    requests = statistics.get_urgent_requests(limit)
    return _json({'success': True, 'data': [_request_payload(r) for r in requests]})


@require_POST
@login_required
@api_errors
def donation_complete_view(request, pk):
    donation = fulfillment.record_donation_completion(pk, actor=request.user)
    return _json({
        'success': True,
        'message': 'Donation marked as completed',
        'data': {
            'id': donation.pk,
            'status': donation.status,
            'units_donated': donation.units_donated,
            'blood_request_id': donation.blood_request_id,
        },
    })
