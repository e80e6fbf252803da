"""Route 53 registrator.

Keeps a Route 53 hosted zone in step with the containers running on this
host: a qualifying container's start creates a weighted record pointing at
the host, its stop/die/kill removes it. The zone is the only state; it is
queried right before every change.
"""
