# noqa
from discovery.services.answer_service import AnswerService
from discovery.services.listening_session import ListeningSessionController
from discovery.services.project_service import ProjectService
from discovery.services.report_service import ReportService

__all__ = [
    "AnswerService",
    "ListeningSessionController",
    "ProjectService",
    "ReportService",
]
