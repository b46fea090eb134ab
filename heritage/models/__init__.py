"""
ORM models. Importing this package registers every table with Base.metadata.
"""

from heritage.models.content import Content, PublicationRequest
from heritage.models.family import Category, Family, FamilyMembership
from heritage.models.genealogy import GenealogyTree, TreeMember
from heritage.models.invitation import Invitation
from heritage.models.notification import Notification
from heritage.models.quiz import Proposition, Question, Quiz, QuizResult
from heritage.models.user import User

__all__ = [
    "Category",
    "Content",
    "Family",
    "FamilyMembership",
    "GenealogyTree",
    "Invitation",
    "Notification",
    "Proposition",
    "PublicationRequest",
    "Question",
    "Quiz",
    "QuizResult",
    "TreeMember",
    "User",
]
