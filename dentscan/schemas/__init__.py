# Schemas package (re-export feature modules for stable imports)
from .analysis.analysis import *
from .scans.scan import *
from .dashboard.dashboard import *
from .common.common import *
