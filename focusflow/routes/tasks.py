# -*- coding: utf-8 -*-
"""
Task CRUD. Free accounts may create a limited number of tasks per UTC day.
"""
import datetime as dt

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from focusflow.database import db
from focusflow.services.structured_logging import get_logger
from focusflow.models.task import Task
from focusflow.schemas.task import TaskCreateSchema, TaskUpdateSchema
from focusflow.services.entitlements import Feature, can_create_task, require_feature
from focusflow.services.request_context import set_user_context

logger = get_logger('focusflow.tasks')

tasks_bp = Blueprint("tasks", __name__)


def _store_error(e: SQLAlchemyError):
    db.session.rollback()
    logger.error(f"Task store error: {e}")
    return jsonify({"error": str(getattr(e, "orig", None) or e)}), 500


def _start_of_day() -> dt.datetime:
    now = dt.datetime.utcnow()
    return dt.datetime(now.year, now.month, now.day)


def count_tasks_today(user_id: str) -> int:
    return (Task.query
            .filter(Task.user_id == user_id, Task.created_at >= _start_of_day())
            .count())


@tasks_bp.route("/tasks", methods=["GET"])
def list_tasks():
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        return jsonify({"error": "User ID required"}), 400

    try:
        tasks = (Task.query
                 .filter_by(user_id=user_id)
                 .order_by(Task.created_at.desc(), Task.id.desc())
                 .all())
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"tasks": [t.to_dict() for t in tasks]})


@tasks_bp.route("/tasks", methods=["POST"])
def create_task():
    data = TaskCreateSchema().load(request.get_json(silent=True) or {})
    user_id = data["user_id"]
    set_user_context(user_id)

    if not can_create_task(user_id, count_tasks_today(user_id)):
        require_feature(user_id, Feature.UNLIMITED_TASKS)

    task = Task(user_id=user_id, text=data["text"], priority=data.get("priority") or "Medium")
    try:
        db.session.add(task)
        db.session.commit()
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"task": task.to_dict()})


@tasks_bp.route("/tasks", methods=["PUT"])
def update_task():
    data = TaskUpdateSchema().load(request.get_json(silent=True) or {})

    task = db.session.get(Task, data["id"])
    if task is None:
        return jsonify({"error": "Task not found"}), 404

    if data.get("completed") is not None:
        task.completed = data["completed"]
        completed_at = data.get("completed_at")
        if completed_at is not None and completed_at.tzinfo is not None:
            completed_at = completed_at.astimezone(dt.timezone.utc).replace(tzinfo=None)
        if task.completed:
            task.completed_at = completed_at or dt.datetime.utcnow()
        else:
            task.completed_at = None
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"task": task.to_dict()})


@tasks_bp.route("/tasks", methods=["DELETE"])
def delete_task():
    task_id = request.args.get("id", type=int)
    if task_id is None:
        return jsonify({"error": "Task ID required"}), 400

    try:
        Task.query.filter_by(id=task_id).delete()
        db.session.commit()
    except SQLAlchemyError as e:
        return _store_error(e)

    return jsonify({"success": True})
