import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from helpdesk.database import get_db, commit_or_500
from helpdesk.deps import get_current_user, require_roles
from helpdesk.models import CommonProblem, User, ROLE_ADMIN
from helpdesk.schemas import ProblemCreate, ProblemOut

router = APIRouter()


def problem_out(p: CommonProblem) -> ProblemOut:
    return ProblemOut(id=p.id, title=p.title, description=p.description, priority=p.priority, category=p.category)


@router.get("/", response_model=list[ProblemOut])
def list_problems(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    rows = db.query(CommonProblem).order_by(CommonProblem.title).all()
    return [problem_out(p) for p in rows]


@router.post("/", response_model=ProblemOut)
def create_problem(body: ProblemCreate, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    title = body.title.strip()
    if not title or not body.description.strip():
        raise HTTPException(status_code=400, detail="Título e descrição são obrigatórios")

    p = CommonProblem(
        id=str(uuid.uuid4()),
        title=title,
        description=body.description.strip(),
        priority=body.priority.value,
        category=body.category.strip() or "Geral",
    )
    db.add(p)
    commit_or_500(db, "create_problem")
    return problem_out(p)


@router.delete("/{problem_id}")
def delete_problem(problem_id: str, db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    p = db.query(CommonProblem).filter(CommonProblem.id == problem_id).first()
    if not p:
        raise HTTPException(status_code=404, detail="Problema comum não encontrado")
    db.delete(p)
    commit_or_500(db, "delete_problem")
    return {"ok": True}
