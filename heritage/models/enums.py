"""
Enumerations shared by models, schemas and services.

Stored as plain VARCHAR columns holding the member value; the str mixin
lets services compare a loaded column directly against a member.
"""

import enum


class UserRole(str, enum.Enum):
    MEMBER = "ROLE_MEMBER"
    ADMIN = "ROLE_ADMIN"  # platform super admin


class FamilyRole(str, enum.Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    READER = "READER"

    @property
    def can_write(self) -> bool:
        return self in (FamilyRole.ADMIN, FamilyRole.EDITOR)

    @property
    def is_admin(self) -> bool:
        return self is FamilyRole.ADMIN

    # Inviting and managing roles are both reserved to family admins
    can_invite = is_admin
    can_manage_roles = is_admin


class ContentType(str, enum.Enum):
    TALE = "TALE"
    CRAFT = "CRAFT"
    PROVERB = "PROVERB"
    RIDDLE = "RIDDLE"


class ContentStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class PublicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class InvitationStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class NotificationType(str, enum.Enum):
    INVITATION = "INVITATION"
    ACCEPTANCE = "ACCEPTANCE"
    CONTENT_PUBLISHED = "CONTENT_PUBLISHED"
    QUIZ_CREATED = "QUIZ_CREATED"


class NotificationChannel(str, enum.Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    IN_APP = "IN_APP"


class QuizDifficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuestionType(str, enum.Enum):
    MCQ = "MCQ"
    TRUE_FALSE = "TRUE_FALSE"


class Gender(str, enum.Enum):
    MALE = "M"
    FEMALE = "F"


class Language(str, enum.Enum):
    FR = "fr"
    EN = "en"
    BM = "bm"
