from .review_prompts import ReviewPromptScheduler

__all__ = ["ReviewPromptScheduler"]
