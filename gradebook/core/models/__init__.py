from gradebook.core.models.class_model import SchoolClass
from gradebook.core.models.student import Student
from gradebook.core.models.subject import Subject
from gradebook.core.models.task import Task
from gradebook.core.models.grade import Grade

__all__ = [
    "Grade",
    "SchoolClass",
    "Student",
    "Subject",
    "Task",
]
