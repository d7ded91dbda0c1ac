"""Coffee diary service functions.

Every query is scoped by the owning user's id; an entry that belongs to
someone else behaves exactly like one that does not exist.
"""
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import current_app
from extensions import db
from models import Coffee

COFFEE_FIELDS = ('name', 'brand', 'preparation', 'shots', 'flavor', 'rating', 'description')

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')

# SQLite INTEGER is a signed 64-bit value
_MAX_INT = 2 ** 63 - 1


def parse_int(value) -> Optional[int]:
    """Parse the leading integer of a form value ("3 shots" -> 3), or None."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def validate_coffee_form(form) -> Tuple[Dict[str, Any], Dict[str, Optional[str]]]:
    """
    Validate a submitted coffee entry.

    Returns ``(data, errors)``. ``errors`` has one key per field, None when the
    field is valid; ``data`` holds the cleaned values (integers parsed).
    """
    def text(field):
        value = form.get(field)
        return value if isinstance(value, str) and len(value) > 0 else None

    def integer(field):
        value = parse_int(form.get(field))
        return value if value is not None and -_MAX_INT <= value <= _MAX_INT else None

    data = {
        'name': text('name'),
        'brand': text('brand'),
        'preparation': text('preparation'),
        'shots': integer('shots'),
        'flavor': text('flavor'),
        'rating': integer('rating'),
        'description': text('description'),
    }

    errors = {
        'name': None if data['name'] is not None else 'Coffee name is required',
        'brand': None if data['brand'] is not None else 'Coffee brand is required',
        'preparation': None if data['preparation'] is not None else 'Preparation is required',
        'shots': None if data['shots'] is not None else 'Number of shots is required',
        'flavor': None if data['flavor'] is not None else 'Flavor description is required',
        'rating': None if data['rating'] is not None else 'Rating is required',
        'description': None if data['description'] is not None else 'Description is required',
    }
    return data, errors


def has_errors(errors: Dict[str, Optional[str]]) -> bool:
    return any(message is not None for message in errors.values())


def get_coffee(coffee_id: int, user_id: int) -> Optional[Coffee]:
    return Coffee.query.filter_by(id=coffee_id, user_id=user_id).first()


def get_coffee_list_items(user_id: int) -> List[Coffee]:
    """Retrieve all entries for a user, most recent first."""
    return Coffee.query.filter_by(user_id=user_id).order_by(Coffee.created_at.desc(), Coffee.id.desc()).all()


def get_coffee_list_items_paginated(user_id: int, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
    """
    Fetch one page of a user's entries, most recent first.

    The count and the page are read in the same session transaction so the
    pagination block matches the items returned.

    Returns:
        Dict with ``items`` and ``pagination`` (total_items, total_pages,
        current_page, per_page, has_next_page, has_prev_page)
    """
    page = max(page, 1)
    if per_page < 1:
        raise ValueError('per_page must be at least 1')

    query = Coffee.query.filter_by(user_id=user_id)
    total_items = query.count()
    total_pages = math.ceil(total_items / per_page)

    offset = (page - 1) * per_page
    if offset >= total_items:
        # past the last page
        items = []
    else:
        items = (
            query.order_by(Coffee.created_at.desc(), Coffee.id.desc())
            .offset(offset)
            .limit(per_page)
            .all()
        )

    return {
        'items': items,
        'pagination': {
            'total_items': total_items,
            'total_pages': total_pages,
            'current_page': page,
            'per_page': per_page,
            'has_next_page': page < total_pages,
            'has_prev_page': page > 1,
        },
    }


def create_coffee(user_id: int, name: str, brand: str, preparation: str, shots: int,
                  flavor: str, rating: int, description: str) -> Coffee:
    coffee = Coffee(
        user_id=user_id,
        name=name,
        brand=brand,
        preparation=preparation,
        shots=shots,
        flavor=flavor,
        rating=rating,
        description=description,
    )
    db.session.add(coffee)
    db.session.commit()
    current_app.logger.info(f'Coffee entry {coffee.id} created for user {user_id}')
    return coffee


def update_coffee(coffee_id: int, user_id: int, **fields) -> Optional[Coffee]:
    """Update an owned entry. Unknown field names are ignored; returns None if not found."""
    coffee = get_coffee(coffee_id, user_id)
    if not coffee:
        return None

    for field in COFFEE_FIELDS:
        if field in fields and fields[field] is not None:
            setattr(coffee, field, fields[field])

    db.session.commit()
    current_app.logger.info(f'Coffee entry {coffee.id} updated for user {user_id}')
    return coffee


def delete_coffee(coffee_id: int, user_id: int) -> int:
    """Delete an owned entry. Returns the number of rows removed (0 or 1)."""
    count = Coffee.query.filter_by(id=coffee_id, user_id=user_id).delete()
    db.session.commit()
    if count:
        current_app.logger.info(f'Coffee entry {coffee_id} deleted for user {user_id}')
    return count


def get_unique_coffees(user_id: int) -> Iterable[Dict[str, str]]:
    """Distinct (name, brand) pairs a user has logged, alphabetically."""
    rows = (
        db.session.query(Coffee.name, Coffee.brand)
        .filter(Coffee.user_id == user_id)
        .distinct()
        .order_by(Coffee.name.asc(), Coffee.brand.asc())
        .all()
    )
    return [{'name': name, 'brand': brand} for name, brand in rows]
