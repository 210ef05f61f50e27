from authormity.tasks.publisher import (
    publish_post,
    publish_due_posts
)

__all__ = [
    'publish_post',
    'publish_due_posts'
]
