"""Core data models for accounts, grievances, upvotes, and session revocation."""
import uuid
from datetime import datetime

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db


def generate_uuid() -> str:
	return str(uuid.uuid4())


ROLE_LOCALITY_MEMBER = "LocalityMember"
ROLE_GOVERNMENT_OFFICIAL = "GovernmentOfficial"

USER_ROLES: tuple[str, ...] = (
	ROLE_LOCALITY_MEMBER,
	ROLE_GOVERNMENT_OFFICIAL,
)

STATUS_PENDING = "pending"
STATUS_IN_PROCESS = "in-process"
STATUS_SOLVED = "solved"

# Ordered: a grievance only ever moves rightwards through this tuple.
GRIEVANCE_STATUSES: tuple[str, ...] = (
	STATUS_PENDING,
	STATUS_IN_PROCESS,
	STATUS_SOLVED,
)

DEPARTMENTS: tuple[str, ...] = (
	"Water-Works",
	"Roadways",
	"Electricity",
	"Sanitation",
	"Street-Lights",
	"Drainage",
)

DEFAULT_PRIORITY = "medium"


def _iso(value: datetime | None) -> str | None:
	return value.isoformat() if value else None


def is_valid_department(value: str | None) -> bool:
	return value in DEPARTMENTS


def is_valid_status(value: str | None) -> bool:
	return value in GRIEVANCE_STATUSES


class User(UserMixin, db.Model):
	__tablename__ = "users"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	name = db.Column(db.String(100), nullable=False)
	email = db.Column(db.String(255), unique=True, nullable=False, index=True)
	password_hash = db.Column(db.String(255), nullable=False)
	phone_number = db.Column(db.String(20), nullable=False)
	address = db.Column(db.String(255), nullable=False)
	role = db.Column(db.String(30), nullable=False, default=ROLE_LOCALITY_MEMBER, index=True)
	is_active = db.Column(db.Boolean, default=True, nullable=False)
	token_version = db.Column(db.Integer, default=0, nullable=False)
	last_login_at = db.Column(db.DateTime, nullable=True)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
	updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	__table_args__ = (
		db.CheckConstraint(
			"role IN ('LocalityMember','GovernmentOfficial')",
			name="ck_user_role_valid",
		),
		db.CheckConstraint("token_version >= 0", name="ck_user_token_version"),
	)

	grievances = db.relationship("Grievance", back_populates="user", lazy="dynamic")
	upvotes = db.relationship("GrievanceUpvote", back_populates="user", lazy="dynamic")

	def set_password(self, password: str) -> None:
		self.password_hash = generate_password_hash(password, method="pbkdf2:sha256", salt_length=16)

	def check_password(self, password: str) -> bool:
		return check_password_hash(self.password_hash, password)

	@property
	def is_official(self) -> bool:
		return self.role == ROLE_GOVERNMENT_OFFICIAL

	@property
	def active(self) -> bool:  # Flask-Login compatibility alias
		return self.is_active

	@property
	def is_authenticated(self) -> bool:
		# Deactivated accounts still authenticate; routes gate them with active_account_required.
		return True

	def profile_payload(self) -> dict:
		return {
			"id": str(self.id),
			"name": self.name,
			"email": self.email,
			"phoneNumber": self.phone_number,
			"address": self.address,
			"signInType": self.role,
			"isActive": self.is_active,
			"lastLogin": _iso(self.last_login_at),
			"createdAt": _iso(self.created_at),
		}


class Grievance(db.Model):
	__tablename__ = "grievances"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
	name = db.Column(db.String(100), nullable=False)
	street = db.Column(db.String(255), nullable=False)
	locality = db.Column(db.String(100), nullable=False, index=True)
	city = db.Column(db.String(100), nullable=False)
	state = db.Column(db.String(100), nullable=False)
	department = db.Column(db.String(50), nullable=False, index=True)
	description = db.Column(db.String(2000), nullable=False)
	phone_number = db.Column(db.String(20), nullable=False)
	image_url = db.Column(db.String(500), nullable=False)
	image_public_id = db.Column(db.String(255), nullable=False)
	solved_image_url = db.Column(db.String(500), nullable=True)
	solved_image_public_id = db.Column(db.String(255), nullable=True)
	upvotes = db.Column(db.Integer, default=0, nullable=False)
	status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
	priority = db.Column(db.String(20), nullable=False, default=DEFAULT_PRIORITY)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
	updated_at = db.Column(
		db.DateTime,
		default=datetime.utcnow,
		onupdate=datetime.utcnow,
		nullable=False,
	)
	solved_on = db.Column(db.DateTime, nullable=True)

	__table_args__ = (
		db.CheckConstraint(
			"status IN ('pending','in-process','solved')",
			name="ck_grievance_status_valid",
		),
		db.CheckConstraint("upvotes >= 0", name="ck_grievance_upvotes_non_negative"),
		db.Index("ix_grievance_status_created", "status", "created_at"),
	)

	user = db.relationship("User", back_populates="grievances")
	upvote_rows = db.relationship(
		"GrievanceUpvote",
		back_populates="grievance",
		order_by="GrievanceUpvote.upvoted_at",
		cascade="all, delete-orphan",
	)

	@property
	def editable_fields(self) -> tuple[str, ...]:
		return ("name", "street", "locality", "city", "state", "department", "description", "phone_number")

	def to_payload(self, has_upvoted: bool = False) -> dict:
		return {
			"id": str(self.id),
			"userId": str(self.user_id),
			"userName": self.user.name if self.user else None,
			"name": self.name,
			"street": self.street,
			"locality": self.locality,
			"city": self.city,
			"state": self.state,
			"department": self.department,
			"description": self.description,
			"phoneNumber": self.phone_number,
			"imageUrl": self.image_url,
			"imagePublicId": self.image_public_id,
			"solvedImageUrl": self.solved_image_url,
			"solvedImagePublicId": self.solved_image_public_id,
			"upvotes": self.upvotes,
			"status": self.status,
			"priority": self.priority,
			"hasUpvoted": has_upvoted,
			"createdAt": _iso(self.created_at),
			"updatedAt": _iso(self.updated_at),
			"solvedOn": _iso(self.solved_on),
		}


class GrievanceUpvote(db.Model):
	__tablename__ = "grievance_upvotes"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	grievance_id = db.Column(
		db.String(36),
		db.ForeignKey("grievances.id", ondelete="CASCADE"),
		nullable=False,
		index=True,
	)
	user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
	upvoted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

	__table_args__ = (
		db.UniqueConstraint("grievance_id", "user_id", name="uq_grievance_upvote_user"),
	)

	grievance = db.relationship("Grievance", back_populates="upvote_rows")
	user = db.relationship("User", back_populates="upvotes")


class BlacklistedToken(db.Model):
	__tablename__ = "token_blacklist"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	token = db.Column(db.String(1000), nullable=False, unique=True, index=True)
	user_id = db.Column(db.String(36), nullable=False, index=True)
	blacklisted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
	expires_at = db.Column(db.DateTime, nullable=False, index=True)
