"""Coffee model definition.
One diary entry: a single logged coffee experience owned by a user.
"""
from datetime import datetime
from extensions import db

class Coffee(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    brand = db.Column(db.String(120), nullable=False)
    preparation = db.Column(db.String(80), nullable=False)
    shots = db.Column(db.Integer, nullable=False)
    flavor = db.Column(db.String(255), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'brand': self.brand,
            'preparation': self.preparation,
            'shots': self.shots,
            'flavor': self.flavor,
            'rating': self.rating,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f'<Coffee {self.name} ({self.brand}) - {self.user_id}>'
