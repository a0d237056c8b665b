from collections import namedtuple
from datetime import datetime, timezone

from app import db

# Contact identity used to address contest owners
OwnerContact = namedtuple("OwnerContact", ["email", "name"])


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, index=True)

    # Profile information
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50))
    display_name = db.Column(db.String(100))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    contests = db.relationship("Contest", backref="owner", lazy="dynamic")

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def full_name(self):
        """Get user's full name"""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or None

    def contact(self):
        """Resolve this user as an email recipient.

        Returns:
            OwnerContact or None when the user has no email address
        """
        if not self.email:
            return None

        name = self.full_name or self.display_name or "Contest Owner"
        return OwnerContact(email=self.email, name=name)
