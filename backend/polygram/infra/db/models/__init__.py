"""Database models."""
from polygram.infra.db.models.user import UserModel
from polygram.infra.db.models.topic import TopicModel, QuestionTopicModel
from polygram.infra.db.models.question import QuestionModel
from polygram.infra.db.models.opinion import OpinionModel, OpinionVoteModel, VoteKind
from polygram.infra.db.models.notification import NotificationModel, NotificationType
from polygram.infra.db.models.picture import PictureModel
from polygram.infra.db.models.device import DeviceModel

__all__ = [
    "UserModel",
    "TopicModel",
    "QuestionTopicModel",
    "QuestionModel",
    "OpinionModel",
    "OpinionVoteModel",
    "VoteKind",
    "NotificationModel",
    "NotificationType",
    "PictureModel",
    "DeviceModel",
]
