from .database import init_db, get_db, get_db_path
from .batch import Batch
from .student import Student
from .subject import Subject
from .timetable import Timetable
from .feedback import Feedback
from .feedback_question import FeedbackQuestionStore

__all__ = ['init_db', 'get_db', 'get_db_path', 'Batch', 'Student', 'Subject',
           'Timetable', 'Feedback', 'FeedbackQuestionStore']
