import json
import logging
import uuid

from botocore.exceptions import BotoCoreError, ClientError

from workerscale.exceptions import BackendUnavailable, MalformedResponse
from workerscale.models import QueueBacklogCount, QueueDescriptor, QueueState

BACKLOG_ATTRIBUTES = [
    'ApproximateNumberOfMessages',
    'ApproximateNumberOfMessagesNotVisible'
]


def _queue_name(queue_url):
    return queue_url.rstrip('/').rsplit('/', 1)[-1]


def list_queue_urls(sqs_client, queue_name_prefix=''):
    """List the URLs of all queues matching the prefix, following pagination."""
    queue_urls = []
    kwargs = {'QueueNamePrefix': queue_name_prefix, 'MaxResults': 1000}
    while True:
        response = sqs_client.list_queues(**kwargs)
        queue_urls.extend(response.get('QueueUrls', []))
        next_token = response.get('NextToken')
        if not next_token:
            return queue_urls
        kwargs['NextToken'] = next_token


def get_queue_descriptors(sqs_client, queue_urls, concurrency_tag):
    """
    Read the worker concurrency of each queue from its tags.

    Queues without the tag are reported as uncapped (None).
    """
    descriptors = []
    for queue_url in queue_urls:
        tags = sqs_client.list_queue_tags(QueueUrl=queue_url).get('Tags', {})
        raw_concurrency = tags.get(concurrency_tag)
        try:
            concurrency = int(raw_concurrency) if raw_concurrency not in (None, '') else None
        except (TypeError, ValueError) as e:
            raise MalformedResponse(
                f"Tag {concurrency_tag}={raw_concurrency!r} on queue {queue_url} is not an integer") from e
        descriptors.append(QueueDescriptor(_queue_name(queue_url), concurrency))
    return descriptors


def get_backlog_counts(sqs_client, queue_urls):
    """Count visible plus in-flight messages for each queue."""
    backlog_counts = []
    for queue_url in queue_urls:
        response = sqs_client.get_queue_attributes(
            QueueUrl=queue_url,
            AttributeNames=BACKLOG_ATTRIBUTES
        )
        try:
            attributes = response['Attributes']
            count = sum(int(attributes.get(name, 0)) for name in BACKLOG_ATTRIBUTES)
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Unexpected queue attributes for {queue_url}: {response!r}") from e
        if count:
            backlog_counts.append(QueueBacklogCount(_queue_name(queue_url), count))
    return backlog_counts


def fetch_queue_state(aws_wrapper, sqs_config):
    """
    Get the concurrency configuration and backlog of every matching SQS queue.

    Args:
        aws_wrapper: AWS wrapper instance
        sqs_config: Dict containing SQS configuration with:
                    - queue_name_prefix: Only queues whose name starts with this prefix
                    - concurrency_tag: Queue tag holding the per-worker concurrency

    Returns:
        QueueState: Concurrency and backlog mappings keyed by queue name

    Raises:
        BackendUnavailable: If SQS cannot be reached or rejects the request
        MalformedResponse: If a tag or attribute cannot be parsed
    """
    try:
        sqs_client = aws_wrapper.create_aws_client('sqs')
        queue_urls = list_queue_urls(sqs_client, sqs_config.get('queue_name_prefix', ''))
        descriptors = get_queue_descriptors(
            sqs_client, queue_urls, sqs_config.get('concurrency_tag', 'worker_concurrency'))
        backlog_counts = get_backlog_counts(sqs_client, queue_urls)
    except (ClientError, BotoCoreError) as e:
        logging.error(f"Error getting SQS queue state: {e}", exc_info=True)
        raise BackendUnavailable(f"Failed to query SQS: {e}") from e

    logging.info(f"Retrieved SQS state for {len(descriptors)} queues, "
                 f"{sum(b.count for b in backlog_counts)} messages in backlog")
    return QueueState.from_records(descriptors, backlog_counts)


def submit_task(aws_wrapper, sqs_config, queue_name, duration_seconds):
    """
    Send one sleep task message to the named SQS queue.

    Returns:
        str: Message ID assigned by SQS
    """
    try:
        sqs_client = aws_wrapper.create_aws_client('sqs')
        queue_url = sqs_client.get_queue_url(QueueName=queue_name)['QueueUrl']
        response = sqs_client.send_message(
            QueueUrl=queue_url,
            MessageBody=json.dumps({'task_id': str(uuid.uuid4()), 'duration_seconds': duration_seconds})
        )
    except (ClientError, BotoCoreError) as e:
        logging.error(f"Error sending task to SQS queue {queue_name}: {e}", exc_info=True)
        raise BackendUnavailable(f"Failed to send task to SQS queue {queue_name}: {e}") from e

    return response['MessageId']
