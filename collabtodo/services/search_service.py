from sqlalchemy.orm import Session
from typing import List

from collabtodo.services.project_service import ProjectService
from collabtodo.services.task_service import TaskService
from collabtodo.services.comment_service import CommentService


class SearchResult:
    def __init__(self, result_type: str, id: int, title: str, snippet: str):
        self.result_type = result_type
        self.id = id
        self.title = title
        self.snippet = snippet


def _preview(text) -> str:
    preview = text or ""
    if len(preview) > 100:
        preview = preview[:100] + "..."
    return preview


def full_text_search(db: Session, user_id: str, query: str) -> List[SearchResult]:
    # Cherche dans projets, tâches et commentaires visibles par l'user
    results = []

    # Projets par nom
    for membership in ProjectService(db).search(user_id, query):
        results.append(SearchResult(
            result_type="project",
            id=membership.project_id,
            title=membership.project.name,
            snippet=""
        ))

    # Tâches par titre / description
    for task in TaskService(db).search(user_id, query):
        results.append(SearchResult(
            result_type="task",
            id=task.id,
            title=task.title,
            snippet=_preview(task.description)
        ))

    # Commentaires par contenu
    for comment in CommentService(db).search(user_id, query):
        results.append(SearchResult(
            result_type="comment",
            id=comment.id,
            title=f"Comment ({'project' if comment.project_id else 'task'})",
            snippet=_preview(comment.text)
        ))

    return results
