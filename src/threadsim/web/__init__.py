"""JSON web API for threadsim.

This package provides a Flask application that exposes a simulation
engine over HTTP.  It is an **optional** extra — install with::

    pip install py-threadsim[web]

The ``create_app`` factory in ``app.py`` binds one engine and serves
state, statistics and event endpoints, plus POST endpoints to
configure the engine, add threads and primitives, load scenarios and
advance the clock.
"""
