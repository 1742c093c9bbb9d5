from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from backend.database import db
from backend.models import isoformat
from backend.payments import SubscriptionService
from backend.schemas import (
    ConfirmSubscriptionRequest, HistoryQuery, ParkingLocationRequest,
    PaymentIntentRequest, TimerRequest, parse,
)
from backend.services import ParkingService
from backend.storage import Storage
from backend.trial import compute_trial_status, require_premium_access

api = Blueprint('api', __name__, url_prefix='/api')


def get_storage():
    if 'storage' not in g:
        g.storage = Storage(db.session)
    return g.storage


def get_parking_service():
    if 'parking_service' not in g:
        g.parking_service = ParkingService(get_storage())
    return g.parking_service


def get_subscription_service():
    if 'subscription_service' not in g:
        g.subscription_service = SubscriptionService(
            get_storage(),
            current_app.extensions['parkpal.payment_gateway'],
            current_app.config['PREMIUM_PRICE_CENTS']
        )
    return g.subscription_service


# ==========================================
# PARKING LOCATIONS
# ==========================================

@api.route('/parking', methods=['POST'])
@jwt_required()
def mark_parking_location():
    """Saves where the user just parked; any previous spot is ended."""
    data = parse(ParkingLocationRequest, request.get_json(silent=True))
    location = get_parking_service().create_parking_location(
        user_id=current_user.id,
        latitude=data.latitude,
        longitude=data.longitude,
        location_name=data.location_name,
        notes=data.notes
    )
    return jsonify(location.to_dict()), 201


@api.route('/parking/active', methods=['GET'])
@jwt_required()
def active_parking_location():
    location = get_parking_service().get_active_parking_location(current_user.id)
    return jsonify(location.to_dict()), 200


@api.route('/parking/<int:location_id>/end', methods=['POST'])
@jwt_required()
def end_parking_location(location_id):
    get_parking_service().end_parking_location(location_id, current_user.id)
    return jsonify({"message": "Parking session ended"}), 200


@api.route('/parking/history', methods=['GET'])
@jwt_required()
def parking_history():
    """Premium feature: recent parking spots, newest first."""
    require_premium_access(current_user)

    query = parse(HistoryQuery, request.args.to_dict())
    history = get_parking_service().get_history(current_user.id, query.limit)
    return jsonify([h.to_dict() for h in history]), 200


# ==========================================
# TIMERS
# ==========================================

@api.route('/timer', methods=['POST'])
@jwt_required()
def create_timer():
    data = parse(TimerRequest, request.get_json(silent=True))
    timer = get_parking_service().create_timer(
        data.parking_location_id, current_user.id, data.duration_minutes
    )
    return jsonify(timer.to_dict()), 201


@api.route('/timer/<int:location_id>', methods=['GET'])
@jwt_required()
def active_timer(location_id):
    timer = get_parking_service().get_active_timer(location_id, requesting_user_id=current_user.id)
    return jsonify(timer.to_dict()), 200


@api.route('/timer/<int:timer_id>/cancel', methods=['POST'])
@jwt_required()
def cancel_timer(timer_id):
    get_parking_service().cancel_timer(timer_id)
    return jsonify({"message": "Timer cancelled"}), 200


# ==========================================
# TRIAL & SUBSCRIPTION
# ==========================================

@api.route('/trial-status', methods=['GET'])
@jwt_required()
def trial_status():
    status = compute_trial_status(current_user)
    status['trialEndDate'] = isoformat(status['trialEndDate'])
    return jsonify(status), 200


@api.route('/create-payment-intent', methods=['POST'])
@jwt_required()
def create_payment_intent():
    data = parse(PaymentIntentRequest, request.get_json(silent=True))
    client_secret = get_subscription_service().create_payment_intent(
        current_user, data.amount, data.description
    )
    return jsonify({'clientSecret': client_secret}), 200


@api.route('/confirm-subscription', methods=['POST'])
@jwt_required()
def confirm_subscription():
    data = parse(ConfirmSubscriptionRequest, request.get_json(silent=True))
    user = get_subscription_service().confirm_subscription(data.payment_intent_id, current_user)
    return jsonify({'success': True, 'user': user.to_dict()}), 200
