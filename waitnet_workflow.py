# waitnet_workflow.py
# Example workflow: wait for an upstream drop, then process it.
from __future__ import annotations

from waitnet import job, net, sh, wait


def workflow():
    return net(
        "nightly",
        net(
            "inputs",
            # local export written by another process
            wait(
                "local-export",
                "local_file",
                path=["data/export/orders.csv", "data/export/customers.csv"],
                timeout=600,
                poll_interval=5,
            ),
            # cool-down so the exporter can finish flushing
            wait("settle", "sleep", sec=2, needs=["local-export"]),
        ),
        job(
            "process",
            sh("Count rows", "wc -l data/export/orders.csv data/export/customers.csv"),
            needs=["inputs"],
        ),
    )
