from agents.exam.agent import ExamGenerationAgent
from agents.exam.question_bank import QuestionBankBackend

__all__ = ["ExamGenerationAgent", "QuestionBankBackend"]
