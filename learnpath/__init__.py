"""
Learning Path Recommender
Recommends what a learner should study next from a prerequisite graph
of topics and their mastery/difficulty state.
"""

__version__ = "0.1.0"
