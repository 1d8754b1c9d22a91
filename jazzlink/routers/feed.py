"""
Community feed router – posts, likes, views and comments.

Author name/photo are copied onto posts and comments when they are written
and are not refreshed when the author's profile changes later.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.errors import NotFoundError, ValidationError
from jazzlink.models.feed import FeedCategory, FeedComment, FeedLike, FeedPost, FeedView
from jazzlink.models.user import User
from jazzlink.routers.auth import get_current_user, require_user
from jazzlink.schemas.feed import CommentCreate, CommentOut, PostCreate, PostOut
from jazzlink.utils.avatar import ANONYMOUS_NAME, placeholder_avatar

router = APIRouter(prefix="/feed", tags=["feed"])

RECRUITING = {FeedCategory.SEEKING_MUSICIAN, FeedCategory.SEEKING_GIG}


async def _get_post(db: AsyncSession, post_id: int) -> FeedPost:
    result = await db.execute(select(FeedPost).where(FeedPost.id == post_id))
    post = result.scalar_one_or_none()
    if not post:
        raise NotFoundError(f"Post {post_id} not found")
    return post


async def _counts(db: AsyncSession, model, post_ids: List[int]) -> Dict[int, int]:
    if not post_ids:
        return {}
    result = await db.execute(
        select(model.post_id, func.count())
        .where(model.post_id.in_(post_ids))
        .group_by(model.post_id)
    )
    return {post_id: count for post_id, count in result.all()}


async def _liked_by(db: AsyncSession, viewer_uid: Optional[str], post_ids: List[int]) -> set:
    if not viewer_uid or not post_ids:
        return set()
    result = await db.execute(
        select(FeedLike.post_id).where(FeedLike.user_uid == viewer_uid, FeedLike.post_id.in_(post_ids))
    )
    return {row[0] for row in result.all()}


async def _present(db: AsyncSession, posts: List[FeedPost], viewer_uid: Optional[str]) -> List[PostOut]:
    ids = [p.id for p in posts]
    likes = await _counts(db, FeedLike, ids)
    views = await _counts(db, FeedView, ids)
    mine = await _liked_by(db, viewer_uid, ids)
    return [
        PostOut(
            id=p.id,
            category=p.category,
            title=p.title,
            content=p.content,
            images=p.images or [],
            instruments=p.instruments or [],
            author_uid=p.author_uid,
            author_name=p.author_name,
            author_photo=p.author_photo,
            created_at=p.created_at,
            like_count=likes.get(p.id, 0),
            view_count=views.get(p.id, 0),
            liked_by_me=p.id in mine,
        )
        for p in posts
    ]


async def _add_once(db: AsyncSession, row) -> bool:
    """Insert a (post, user) marker; False when it already exists."""
    if await db.get(type(row), (row.post_id, row.user_uid)) is not None:
        return False
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    return True


# ═══════════════════════════════════════════════════════════════
#  Posts
# ═══════════════════════════════════════════════════════════════

@router.get("/", response_model=List[PostOut])
async def list_posts(
    category: Optional[FeedCategory] = None,
    q: Optional[str] = None,
    instrument: Optional[str] = None,
    sort: str = "latest",
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Newest first.  ``sort=popular`` orders by likes + views instead.
    ``instrument`` only narrows the two recruiting categories.
    """
    stmt = select(FeedPost).order_by(FeedPost.created_at.desc(), FeedPost.id.desc())
    if category:
        stmt = stmt.where(FeedPost.category == category)
    if q:
        pattern = f"%{q.strip()}%"
        stmt = stmt.where(or_(FeedPost.title.ilike(pattern), FeedPost.content.ilike(pattern)))
    posts = list((await db.execute(stmt)).scalars().all())

    if instrument and category in RECRUITING:
        posts = [p for p in posts if instrument in (p.instruments or [])]

    out = await _present(db, posts, current_user.uid if current_user else None)
    if sort == "popular":
        out.sort(key=lambda p: p.like_count + p.view_count, reverse=True)
    return out


@router.post("/", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    if not body.title.strip() or not body.content.strip():
        raise ValidationError("Title and content are required")
    name = current_user.name or ANONYMOUS_NAME
    post = FeedPost(
        category=body.category,
        title=body.title.strip(),
        content=body.content,
        images=body.images,
        instruments=body.instruments,
        author_uid=current_user.uid,
        author_name=name,
        author_photo=current_user.photo or placeholder_avatar(name, size=None),
    )
    db.add(post)
    await db.commit()
    await db.refresh(post)
    return (await _present(db, [post], current_user.uid))[0]


@router.get("/{post_id}", response_model=PostOut)
async def read_post(
    post_id: int,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open a post; a signed-in reader is counted as a viewer once."""
    viewer_uid = current_user.uid if current_user else None
    post = await _get_post(db, post_id)
    if viewer_uid:
        await _add_once(db, FeedView(post_id=post.id, user_uid=viewer_uid))
        post = await _get_post(db, post_id)
    return (await _present(db, [post], viewer_uid))[0]


@router.post("/{post_id}/like", response_model=PostOut)
async def toggle_like(
    post_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    viewer_uid = current_user.uid
    post = await _get_post(db, post_id)
    removed = await db.execute(
        delete(FeedLike).where(FeedLike.post_id == post.id, FeedLike.user_uid == viewer_uid)
    )
    if removed.rowcount:
        await db.commit()
    else:
        await _add_once(db, FeedLike(post_id=post.id, user_uid=viewer_uid))
    post = await _get_post(db, post_id)
    return (await _present(db, [post], viewer_uid))[0]


# ═══════════════════════════════════════════════════════════════
#  Comments
# ═══════════════════════════════════════════════════════════════

@router.get("/{post_id}/comments", response_model=List[CommentOut])
async def list_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    await _get_post(db, post_id)
    result = await db.execute(
        select(FeedComment)
        .where(FeedComment.post_id == post_id)
        .order_by(FeedComment.created_at, FeedComment.id)
    )
    return result.scalars().all()


@router.post("/{post_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: int,
    body: CommentCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    post = await _get_post(db, post_id)
    if not body.content.strip():
        raise ValidationError("Comment must not be empty")
    comment = FeedComment(
        post_id=post.id,
        author_uid=current_user.uid,
        author_name=current_user.name,
        author_photo=current_user.photo,
        content=body.content,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    return comment
