import unittest
from types import SimpleNamespace
from unittest import mock

import requests

from workerscale.exceptions import BackendUnavailable, MalformedResponse
from workerscale.queue_state import dbos


def _response(status_code=200, payload=None, text=''):
    response = mock.MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class TestDbosQueueState(unittest.TestCase):
    """Tests for the DBOS queue backend."""

    def setUp(self):
        get_patcher = mock.patch('workerscale.queue_state.dbos.requests.get')
        self.mock_get = get_patcher.start()
        self.addCleanup(get_patcher.stop)

        client_patcher = mock.patch('workerscale.queue_state.dbos.DBOSClient')
        self.mock_client_cls = client_patcher.start()
        self.addCleanup(client_patcher.stop)
        self.client = self.mock_client_cls.return_value

        self.dbos_config = {
            'admin_url': 'http://worker:3001/',
            'system_database_url': 'postgresql://postgres@db/dbos',
            'workflow_name': 'sleep_workflow',
            'timeout': 3
        }

    def test_fetch_queue_state(self):
        """Test concurrency from the admin server and backlog counted per queue."""
        self.mock_get.return_value = _response(payload=[
            {'name': 'queue1', 'workerConcurrency': 1, 'concurrency': 10},
            {'name': 'unbounded'},
        ])
        self.client.list_queued_workflows.return_value = [
            SimpleNamespace(queue_name='queue1'),
            SimpleNamespace(queue_name='queue1'),
            SimpleNamespace(queue_name='unbounded'),
            SimpleNamespace(queue_name=None),
        ]

        state = dbos.fetch_queue_state(None, self.dbos_config)

        self.assertEqual(state.concurrency, {'queue1': 1, 'unbounded': None})
        self.assertEqual(state.backlog, {'queue1': 2, 'unbounded': 1})
        self.mock_get.assert_called_once_with('http://worker:3001/dbos-workflow-queues-metadata', timeout=3)
        self.mock_client_cls.assert_called_once_with(system_database_url='postgresql://postgres@db/dbos')
        self.client.list_queued_workflows.assert_called_once_with(load_input=False, load_output=False)
        self.client.destroy.assert_called_once()

    def test_admin_connection_error(self):
        """Test an unreachable admin server raises BackendUnavailable."""
        self.mock_get.side_effect = requests.exceptions.ConnectionError('refused')

        with self.assertRaises(BackendUnavailable):
            dbos.fetch_queue_state(None, self.dbos_config)

    def test_admin_timeout(self):
        """Test a stalled admin server raises BackendUnavailable."""
        self.mock_get.side_effect = requests.exceptions.Timeout('slow')

        with self.assertRaises(BackendUnavailable):
            dbos.fetch_queue_state(None, self.dbos_config)

    def test_admin_error_status(self):
        """Test a non-200 status raises BackendUnavailable carrying the body."""
        self.mock_get.return_value = _response(status_code=500, text='boom')

        with self.assertRaises(BackendUnavailable) as ctx:
            dbos.fetch_queue_state(None, self.dbos_config)
        self.assertIn('500', str(ctx.exception))
        self.assertIn('boom', str(ctx.exception))

    def test_admin_invalid_json(self):
        """Test an undecodable body raises MalformedResponse."""
        self.mock_get.return_value = _response(payload=ValueError('Expecting value'))

        with self.assertRaises(MalformedResponse):
            dbos.fetch_queue_state(None, self.dbos_config)

    def test_parse_queue_metadata_rejects_bad_shapes(self):
        """Test payload shapes that cannot be turned into queue descriptors."""
        bad_payloads = [
            {'name': 'queue1'},
            ['queue1'],
            [{'workerConcurrency': 1}],
            [{'name': '', 'workerConcurrency': 1}],
            [{'name': 'queue1', 'workerConcurrency': '1'}],
            [{'name': 'queue1', 'workerConcurrency': True}],
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(MalformedResponse):
                    dbos.parse_queue_metadata(payload)

    def test_parse_queue_metadata_keeps_negative_values(self):
        """Test negative concurrency is passed through for the estimator to reject."""
        descriptors = dbos.parse_queue_metadata([{'name': 'queue1', 'workerConcurrency': -1}])

        self.assertEqual(descriptors[0].worker_concurrency, -1)

    def test_missing_database_url(self):
        """Test that listing workflows without a database URL raises BackendUnavailable."""
        self.mock_get.return_value = _response(payload=[])
        del self.dbos_config['system_database_url']

        with self.assertRaises(BackendUnavailable):
            dbos.fetch_queue_state(None, self.dbos_config)
        self.mock_client_cls.assert_not_called()

    def test_list_workflows_failure(self):
        """Test a database error while listing raises BackendUnavailable and closes the client."""
        self.mock_get.return_value = _response(payload=[{'name': 'queue1', 'workerConcurrency': 1}])
        self.client.list_queued_workflows.side_effect = RuntimeError('connection reset')

        with self.assertRaises(BackendUnavailable):
            dbos.fetch_queue_state(None, self.dbos_config)
        self.client.destroy.assert_called_once()

    def test_submit_task(self):
        """Test that the sleep workflow is enqueued on the named queue."""
        self.client.enqueue.return_value.get_workflow_id.return_value = 'wf-123'

        workflow_id = dbos.submit_task(None, self.dbos_config, 'queue1', 20)

        self.assertEqual(workflow_id, 'wf-123')
        self.client.enqueue.assert_called_once_with(
            {'queue_name': 'queue1', 'workflow_name': 'sleep_workflow'}, 20)
        self.client.destroy.assert_called_once()

    def test_submit_task_failure(self):
        """Test an enqueue failure raises BackendUnavailable."""
        self.client.enqueue.side_effect = RuntimeError('database down')

        with self.assertRaises(BackendUnavailable):
            dbos.submit_task(None, self.dbos_config, 'queue1', 20)


if __name__ == '__main__':
    unittest.main()
