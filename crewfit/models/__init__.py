from crewfit.models.activity import Activity
from crewfit.models.base import Base
from crewfit.models.comment import Comment, CommentReply
from crewfit.models.friend_edge import FriendEdge
from crewfit.models.reaction import Reaction
from crewfit.models.user import User
from crewfit.models.user_stats import UserStats

__all__ = [
    "Activity",
    "Base",
    "Comment",
    "CommentReply",
    "FriendEdge",
    "Reaction",
    "User",
    "UserStats",
]
