import enum

from models import db


class Role(str, enum.Enum):
    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"

    @classmethod
    def parse(cls, value):
        """Accepts a Role or its string value; raises ValueError for anything else."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.Enum(Role, values_callable=lambda roles: [r.value for r in roles]), nullable=False)
    username = db.Column(db.String(50), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)  # hashed
    name = db.Column(db.String(100), nullable=False)
    roll_no = db.Column(db.String(20), nullable=True)  # only for students
