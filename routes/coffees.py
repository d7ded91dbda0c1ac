from flask import Blueprint, request, current_app, jsonify
from services import coffee_service
from services.coffee_service import validate_coffee_form, has_errors, parse_int
from services.stats_service import compute_statistics
from routes.auth import login_required, get_current_user, get_form

coffees_bp = Blueprint('coffees', __name__)

NOT_FOUND_MESSAGE = 'Coffee not found'


@coffees_bp.route('/')
@login_required
def list_coffees():
    user = get_current_user()
    coffees = coffee_service.get_coffee_list_items(user.id)
    return jsonify({'coffee_list_items': [c.to_dict() for c in coffees]})


@coffees_bp.route('/feed')
@login_required
def feed():
    user = get_current_user()
    page = request.args.get('page', 1, type=int)
    per_page = current_app.config['FEED_PER_PAGE']

    coffee_data = coffee_service.get_coffee_list_items_paginated(user.id, page=page, per_page=per_page)
    return jsonify({
        'items': [c.to_dict() for c in coffee_data['items']],
        'pagination': coffee_data['pagination'],
    })


@coffees_bp.route('/new', methods=['GET', 'POST'])
@login_required
def new_coffee():
    user = get_current_user()

    if request.method == 'GET':
        return jsonify({
            'unique_coffees': coffee_service.get_unique_coffees(user.id),
            'coffee_list': [c.to_dict() for c in coffee_service.get_coffee_list_items(user.id)],
        })

    form = get_form()

    # Renaming a past entry from the "repeat a coffee" list
    if form.get('_action') == 'edit':
        coffee_id = parse_int(form.get('id'))
        name = form.get('name')
        brand = form.get('brand')
        if coffee_id is None or not isinstance(name, str) or not isinstance(brand, str):
            return jsonify({'errors': {'form': 'Invalid form data'}}), 400

        coffee = coffee_service.update_coffee(coffee_id, user.id, name=name, brand=brand)
        if not coffee:
            return jsonify({'errors': {'form': NOT_FOUND_MESSAGE}}), 404
        return jsonify({'success': True, 'coffee': coffee.to_dict()})

    data, errors = validate_coffee_form(form)
    if has_errors(errors):
        return jsonify({'errors': errors}), 400

    coffee = coffee_service.create_coffee(user_id=user.id, **data)
    return jsonify({'coffee': coffee.to_dict(), 'redirect_to': f'/coffees/{coffee.id}'}), 201


@coffees_bp.route('/stats')
@login_required
def stats():
    user = get_current_user()
    coffees = coffee_service.get_coffee_list_items(user.id)
    return jsonify(compute_statistics(coffees, request.args.get('range')))


@coffees_bp.route('/<int:coffee_id>', methods=['GET', 'POST'])
@login_required
def coffee_detail(coffee_id):
    user = get_current_user()

    if request.method == 'GET':
        coffee = coffee_service.get_coffee(coffee_id, user.id)
        if not coffee:
            return jsonify({'error': NOT_FOUND_MESSAGE}), 404
        return jsonify({'coffee': coffee.to_dict()})

    form = get_form()
    if form.get('intent') == 'delete':
        coffee_service.delete_coffee(coffee_id, user.id)
        return jsonify({'success': True, 'redirect_to': '/coffees'})

    data, errors = validate_coffee_form(form)
    if has_errors(errors):
        return jsonify({'errors': {'form': 'Form not submitted correctly.', **errors}}), 400

    coffee = coffee_service.update_coffee(coffee_id, user.id, **data)
    if not coffee:
        return jsonify({'error': NOT_FOUND_MESSAGE}), 404
    return jsonify({'success': True, 'coffee': coffee.to_dict()})
