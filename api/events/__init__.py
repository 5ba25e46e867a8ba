from flask import Blueprint
import logging

from database import DatabaseManager
from utils.errors import ValidationError


events_bp = Blueprint('events', __name__)

db_manager = DatabaseManager()
logger = logging.getLogger(__name__)


def parse_event_payload(data):
    """校验活动字段，返回清洗后的字典"""
    name = str(data.get('name') or '').strip()
    club_name = str(data.get('club_name') or '').strip()
    if not name:
        raise ValidationError('Event name is required')
    if not club_name:
        raise ValidationError('Club name is required')

    try:
        min_team_size = int(data.get('min_team_size', 1))
        max_team_size = int(data.get('max_team_size', min_team_size))
    except (TypeError, ValueError):
        raise ValidationError('Team sizes must be whole numbers')
    if min_team_size < 1 or max_team_size < min_team_size:
        raise ValidationError('Team sizes must satisfy 1 <= min_team_size <= max_team_size')

    return {
        'name': name,
        'club_name': club_name,
        'description': str(data.get('description') or '').strip(),
        'poster_url': (str(data.get('poster_url')).strip() or None) if data.get('poster_url') else None,
        'min_team_size': min_team_size,
        'max_team_size': max_team_size,
    }


# 每个具体路由实现在本包下的独立模块中
from . import (
    get_events,
    get_event,
    get_clubs,
    create_event,
    update_event,
    delete_event,
    upload_poster,
)

__all__ = ['events_bp']
