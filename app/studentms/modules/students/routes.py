from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

from app.studentms.db import db_session
from app.studentms.modules.students.errors import InvalidStudentId, StudentError
from app.studentms.modules.students.service import (
    ListQuery,
    StudentPayload,
    create_student,
    delete_student,
    get_student,
    list_departments,
    list_students,
    translate_store_error,
    update_student,
    validate_student_payload,
)

bp = Blueprint("students", __name__)


def _render_form(template: str, title: str, payload: StudentPayload, errors: list[str], student_id: str | None = None, status: int = 200):
    return (
        render_template(
            template,
            title=title,
            errors=errors,
            data=payload.as_form_data(),
            student_id=student_id,
        ),
        status,
    )


def _render_error(message: str, status: int):
    return render_template("errors/error.html", title="Error", message=message), status


def _list_redirect():
    return redirect(url_for("students.students_list"))


# ---------- List ----------
@bp.get("")
def students_list():
    lq = ListQuery.from_args(request.args)
    try:
        s = db_session()
        students = list_students(s, lq)
        departments = list_departments(s)
    except SQLAlchemyError as e:
        current_app.logger.exception("students_list failed")
        return _render_error(translate_store_error(e), 500)

    return render_template(
        "students/list.html",
        title="Students",
        students=students,
        departments=departments,
        query=lq.as_dict(),
        msg=request.args.get("msg") or None,
    )


# ---------- New ----------
@bp.get("/add")
def students_add_get():
    return _render_form("students/add.html", "Add Student", StudentPayload(), [])


@bp.post("/add")
def students_add_post():
    payload = StudentPayload.from_form(request.form)
    data, errors = validate_student_payload(payload)
    if errors:
        return _render_form("students/add.html", "Add Student", payload, errors, status=400)

    s = db_session()
    try:
        create_student(s, data)
        s.commit()
    except (StudentError, SQLAlchemyError) as e:
        s.rollback()
        if isinstance(e, SQLAlchemyError):
            current_app.logger.exception("create_student failed")
        return _render_form("students/add.html", "Add Student", payload, [translate_store_error(e)], status=400)

    flash("Student added successfully", "success")
    return _list_redirect()


# ---------- Detail ----------
@bp.get("/<student_id>")
def student_detail(student_id: str):
    try:
        student = get_student(db_session(), student_id)
    except InvalidStudentId as e:
        return _render_error(str(e), 400)
    except SQLAlchemyError as e:
        current_app.logger.exception("student_detail failed (id=%s)", student_id)
        return _render_error(translate_store_error(e), 400)

    if student is None:
        return render_template("errors/404.html", title="Not found"), 404
    return render_template("students/detail.html", title="Student Details", student=student)


# ---------- Edit ----------
@bp.get("/edit/<student_id>")
def student_edit_get(student_id: str):
    # Unlike the detail view, lookup failures land back on the list with a notice.
    try:
        student = get_student(db_session(), student_id)
    except (InvalidStudentId, SQLAlchemyError) as e:
        if isinstance(e, SQLAlchemyError):
            current_app.logger.exception("student_edit_get failed (id=%s)", student_id)
        flash(translate_store_error(e), "danger")
        return _list_redirect()

    if student is None:
        flash("Student not found", "warning")
        return _list_redirect()
    return _render_form("students/edit.html", "Edit Student", StudentPayload.from_student(student), [], student_id=student.id)


@bp.post("/edit/<student_id>")
def student_edit_post(student_id: str):
    payload = StudentPayload.from_form(request.form)
    data, errors = validate_student_payload(payload)
    if errors:
        return _render_form("students/edit.html", "Edit Student", payload, errors, student_id=student_id, status=400)

    s = db_session()
    try:
        update_student(s, student_id, data)
        s.commit()
    except (StudentError, SQLAlchemyError) as e:
        s.rollback()
        if isinstance(e, SQLAlchemyError):
            current_app.logger.exception("update_student failed (id=%s)", student_id)
        return _render_form(
            "students/edit.html", "Edit Student", payload, [translate_store_error(e)], student_id=student_id, status=400
        )

    flash("Student updated successfully", "success")
    return _list_redirect()


# ---------- Delete ----------
@bp.post("/delete/<student_id>")
def student_delete(student_id: str):
    s = db_session()
    try:
        delete_student(s, student_id)
        s.commit()
    except (InvalidStudentId, SQLAlchemyError) as e:
        s.rollback()
        if isinstance(e, SQLAlchemyError):
            current_app.logger.exception("delete_student failed (id=%s)", student_id)
        flash(translate_store_error(e), "danger")
        return _list_redirect()

    flash("Student deleted", "success")
    return _list_redirect()
