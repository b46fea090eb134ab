"""
Personal dashboard and platform statistics schemas.
"""

import uuid

from pydantic import BaseModel


class UserDashboardResponse(BaseModel):
    user_id: uuid.UUID
    family_count: int
    contents_authored: int
    quiz_results: int
    unread_notifications: int
    pending_invitations: int


class PlatformStatisticsResponse(BaseModel):
    users: int
    families: int
    contents: int
    published_contents: int
    quizzes: int
    categories: int
    pending_invitations: int
    notifications: int
