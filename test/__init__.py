"""
Test package for PrizmLink Matrix Studio.
This module ensures that the project root is in the Python path.
"""
import sys
import pathlib

# Add the project root to the Python path
project_dir = pathlib.Path(__file__).parent.parent.absolute()
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))
