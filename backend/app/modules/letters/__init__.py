"""Letters module.

Metered GST letter generation: admission against the credit meter, the
text-generation provider call, and atomic debit plus letter persistence.
"""

from app.modules.letters.models import Letter
from app.modules.letters.router import router
from app.modules.letters.service import (
    LetterGenerationResult,
    LetterGenerationService,
    LetterPersistenceError,
    QuotaExhaustedError,
)

__all__ = [
    "Letter",
    "router",
    "LetterGenerationResult",
    "LetterGenerationService",
    "LetterPersistenceError",
    "QuotaExhaustedError",
]
