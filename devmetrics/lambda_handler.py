"""AWS Lambda handler for the DevMetrics API.

Wraps the FastAPI application with the Mangum adapter so the service can
run behind API Gateway. Lifespan is off: each cold start skips the table
check and pending usage updates finish within the invocation that
scheduled them or are lost with the container.
"""

from mangum import Mangum

from devmetrics.main import app

# api_gateway_base_path strips the stage name from paths
handler = Mangum(app, lifespan="off", api_gateway_base_path="/v1")


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda function handler.

    Args:
        event: API Gateway event containing request details
        context: Lambda context object with runtime information

    Returns:
        API Gateway response dict with statusCode, headers, and body
    """
    return handler(event, context)
