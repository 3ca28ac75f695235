"""Post selection and ordering."""

from post_exporter.models.export import (
    ExportConfiguration,
    ExportMode,
    OrderMode,
    SortDirection,
)
from post_exporter.models.document import sort_timestamp
from post_exporter.models.publication import PostRef


def select_posts(
    posts: list[PostRef], configuration: ExportConfiguration
) -> tuple[list[PostRef], list[str]]:
    """내보낼 포스트 선택.

    Args:
        posts: 퍼블리케이션의 전체 포스트 목록
        configuration: 내보내기 옵션

    Returns:
        (선택된 포스트 (포스트 목록 순서), 경고 목록)
    """
    if configuration.mode == ExportMode.ENTIRE_PROFILE:
        return list(posts), []

    selected_ids = set(configuration.selected_post_ids)
    selected = [post for post in posts if post.id in selected_ids]

    known_ids = {post.id for post in posts}
    warnings = [
        f"Selected post {post_id} is not in the post list and was skipped"
        for post_id in dict.fromkeys(configuration.selected_post_ids)
        if post_id not in known_ids
    ]
    return selected, warnings


def resolve_order(
    posts: list[PostRef], configuration: ExportConfiguration
) -> list[PostRef]:
    """선택된 포스트의 최종 출력 순서 결정.

    - date: 발행일 기준 안정 정렬, 동일 시각은 제목 오름차순 (방향과 무관)
    - manual: manual_order 순서 → 나머지는 선택 순서대로 뒤에 추가
    """
    if configuration.order_mode == OrderMode.MANUAL:
        return _manual_order(posts, configuration.manual_order)

    by_title = sorted(posts, key=lambda post: post.title)
    if configuration.sort_direction == SortDirection.ASC:
        return sorted(by_title, key=lambda post: sort_timestamp(post.published_at))

    return sorted(by_title, key=lambda post: -sort_timestamp(post.published_at))


def _manual_order(posts: list[PostRef], manual_order: list[str]) -> list[PostRef]:
    by_id = {post.id: post for post in posts}
    ordered: list[PostRef] = []
    placed: set[str] = set()

    for post_id in manual_order:
        if post_id in by_id and post_id not in placed:
            ordered.append(by_id[post_id])
            placed.add(post_id)

    for post in posts:
        if post.id not in placed:
            ordered.append(post)
            placed.add(post.id)
    return ordered
