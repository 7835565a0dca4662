"""
Blog models wired to the in-memory backend.

Shows the pieces a real application declares once at start-up: a
connection, a validator, model types with casts/scopes/hooks, and then
ordinary create/update/delete traffic.

Run with:  python examples/blog.py
"""

import logging

from docstate import (
    InMemoryConnection,
    JsonSchemaValidator,
    Model,
    Scope,
    accessor,
    register_connection,
    set_validator,
)

logger = logging.getLogger(__name__)


POST_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "status": {"enum": ["draft", "published"]},
    },
    "required": ["title", "status"],
}


class PublishedScope(Scope):
    name = "published"

    def apply(self, query, model):
        query.where("status", "published")


class Post(Model):
    casts = {"views": "int", "published_at": "datetime"}
    hidden = ("editor_notes",)
    timestamps = True

    @classmethod
    def boot(cls):
        super().boot()
        cls.add_scope(PublishedScope())

    @accessor("slug")
    def _slug(self, value):
        return value or (self.get("title") or "").lower().replace(" ", "-")


@Post.saving
def refuse_empty_drafts(post):
    if post.get("status") == "draft" and not post.get("body"):
        logger.info(f"Refusing to save empty draft {post.get('title')!r}")
        return False


@Post.updated
def log_update(post):
    logger.info(f"Post {post.get_id()} updated: {sorted(post.get_changes())}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    register_connection("default", InMemoryConnection(), default=True)
    set_validator(JsonSchemaValidator({"PostSchema": POST_SCHEMA}))

    post = Post.create({"title": "Hello World", "status": "published", "views": "0"})
    logger.info(f"Created {post.get_id()} slug={post.get('slug')}")

    post.set("views", post.get("views") + 1)
    post.save()

    post.save()  # nothing changed: no write

    draft = Post.create({"title": "Empty", "status": "draft"})
    logger.info(f"Empty draft persisted: {draft.exists}")

    logger.info(f"Published posts: {[p.get('title') for p in Post.all()]}")
    logger.info(f"Serialized: {post.to_dict()}")

    post.delete()
    logger.info(f"After delete: exists={post.exists}, remaining={Post.query().count()}")


if __name__ == "__main__":
    main()
