"""Business logic services."""

from .attempts import AttemptService
from .catalog import CatalogService
from .progress import ProgressService
from .question_bank import QuestionBankService
from .scoring import ScoringService
from .selector import QuestionSelector
from .users import UserService

__all__ = [
    "AttemptService",
    "CatalogService",
    "ProgressService",
    "QuestionBankService",
    "ScoringService",
    "QuestionSelector",
    "UserService",
]
