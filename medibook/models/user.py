from medibook.extensions import db, bcrypt
from .base import TimestampMixin

ROLES = ('admin', 'doctor', 'patient')


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Role - 'admin', 'doctor' or 'patient'; fixed once the account exists
    role = db.Column(db.String(20), nullable=False, index=True)
    name = db.Column(db.String(150))

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    def has_role(self, *role_names):
        return self.role in role_names

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'name': self.name,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
