from .filters import FILTER_PRESETS, apply_filter, list_filters

__all__ = ["FILTER_PRESETS", "apply_filter", "list_filters"]
