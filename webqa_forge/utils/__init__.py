from .get_log import GetLog
from .id_generator import ContentHashIdGenerator, IndexIdGenerator
from .log_icon import icon

__all__ = ["GetLog", "IndexIdGenerator", "ContentHashIdGenerator", "icon"]
