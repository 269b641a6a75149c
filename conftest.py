import os

# Must be set before anything imports core.config
os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
