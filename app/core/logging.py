import logging
import sys

CONTEXT_FIELDS = ("entity_type", "entity_id", "stage")


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional entity and stage fields."""
    def format(self, record):
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, '-')
        return super().format(record)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [entity=%(entity_type)s:%(entity_id)s stage=%(stage)s] - %(message)s"
    ))
    logging.basicConfig(
        level=level.upper(),
        handlers=[handler],
    )
