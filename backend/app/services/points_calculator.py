"""
Point values for engagement on ShareCase.

All values are whole points; the ledger never stores fractions.
"""

POINTS_PER_UPLOAD = 25
POINTS_PER_LIKE = 2
POINTS_PER_COMMENT = 5            # project owner, per comment received
POINTS_PER_COMMENTER = 2          # commenter, per comment written
POINTS_FOR_FEATURED_PROJECT = 50

VIEWS_PER_BATCH = 20              # owner earns per 20 unique viewers
POINTS_PER_VIEW_BATCH = 1
MAX_VIEW_POINTS_PER_PROJECT = 50

PROJECTS_VIEWED_PER_BATCH = 20    # viewer earns per 20 unique projects viewed
POINTS_PER_VIEWED_BATCH = 2
MAX_VIEWER_POINTS = 100

BONUS_POINTS = {
    "featured": POINTS_FOR_FEATURED_PROJECT,
}


def calculate_upload_points() -> int:
    return POINTS_PER_UPLOAD


def calculate_like_points() -> int:
    return POINTS_PER_LIKE


def calculate_comment_points() -> int:
    return POINTS_PER_COMMENT


def calculate_commenter_points() -> int:
    return POINTS_PER_COMMENTER


def calculate_view_points(unique_view_count: int) -> int:
    """Total owner points a project has earned from `unique_view_count` viewers"""
    if unique_view_count <= 0:
        return 0
    batches = unique_view_count // VIEWS_PER_BATCH
    return min(batches * POINTS_PER_VIEW_BATCH, MAX_VIEW_POINTS_PER_PROJECT)


def calculate_viewer_points(unique_projects_viewed: int) -> int:
    """Total points a user has earned from viewing `unique_projects_viewed` projects"""
    if unique_projects_viewed <= 0:
        return 0
    batches = unique_projects_viewed // PROJECTS_VIEWED_PER_BATCH
    return min(batches * POINTS_PER_VIEWED_BATCH, MAX_VIEWER_POINTS)


def calculate_bonus_points(bonus_type: str) -> int:
    """Admin-awarded bonus; unknown types are worth nothing"""
    return BONUS_POINTS.get(bonus_type, 0)


def incremental_points(calculator, previous_count: int, new_count: int) -> int:
    """Points newly unlocked when a running count moves from previous to new"""
    return max(calculator(new_count) - calculator(previous_count), 0)
