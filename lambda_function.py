"""
AWS Lambda entry point serving the expected worker count.

Behind API Gateway or a function URL, each invocation runs one poll of the
configured queue backend and returns {"expected_workers": n} for the
autoscaler, or an error status with a readable message.
"""

from workerscale.common.logger import setup_logging

setup_logging()

from workerscale.main import lambda_handler


def handler(event, context):
    """
    Return the expected worker metric as an API Gateway proxy response.

    Configuration overrides may be passed under event["config"].
    """
    return lambda_handler(event, context)
