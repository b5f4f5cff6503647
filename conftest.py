import os
import sys

# allow running the test suite from a source checkout without installing
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))
