"""
pytest configuration for support_hub tests
"""
import sys
from pathlib import Path

# Project root on the path so `support_hub` imports without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
