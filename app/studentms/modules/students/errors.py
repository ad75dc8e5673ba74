from __future__ import annotations


class StudentError(Exception):
    """Base for failures raised by the student service layer."""


class InvalidStudentId(StudentError, ValueError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f'Invalid student id "{raw}".')


class StudentNotFound(StudentError):
    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__("Student not found.")


class UniquenessConflict(StudentError):
    """
    A write would duplicate a unique column of another student.
    `fields` names the offending columns, in check order (roll_number before email).
    """

    def __init__(self, fields: list[str] | tuple[str, ...]):
        self.fields = tuple(fields)
        super().__init__(f"Duplicate value for: {', '.join(self.fields)}")
