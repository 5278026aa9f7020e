import os
import unittest
from unittest import mock

from workerscale.config import load_config


class TestConfig(unittest.TestCase):
    """Tests for configuration loading."""

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        """Test defaults when no environment variables are set."""
        config = load_config()

        self.assertEqual(config.queue_backend, 'dbos')
        self.assertEqual(config.backend_timeout, 5.0)
        self.assertEqual(config.submit_queue, 'queue1')
        self.assertEqual(config.region, 'us-east-1')
        self.assertIsNone(config.sso_profile)
        self.assertEqual(config.port, 8000)
        self.assertEqual(config.queue_config, {
            'admin_url': 'http://localhost:3001',
            'workflow_name': 'sleep_workflow',
            'timeout': 5.0
        })

    @mock.patch.dict(os.environ, {
        'QUEUE_BACKEND': 'Redis',
        'REDIS_HOST': 'redis.internal',
        'REDIS_PORT': '6380',
        'REDIS_USE_SSL': 'true',
        'BACKEND_TIMEOUT': '2.5'
    }, clear=True)
    def test_redis_from_environment(self):
        """Test Redis settings are read and typed from the environment."""
        config = load_config()

        self.assertEqual(config.queue_backend, 'redis')
        self.assertEqual(config.queue_config['host'], 'redis.internal')
        self.assertEqual(config.queue_config['port'], 6380)
        self.assertTrue(config.queue_config['use_ssl'])
        self.assertEqual(config.queue_config['concurrency_key'], 'queues:concurrency')
        self.assertEqual(config.queue_config['timeout'], 2.5)
        self.assertNotIn('password', config.queue_config)

    @mock.patch.dict(os.environ, {'QUEUE_BACKEND': 'dbos', 'SUBMIT_QUEUE_NAME': 'env-queue'}, clear=True)
    def test_event_overrides_environment(self):
        """Test that event payload values take precedence."""
        config = load_config({
            'config': {
                'queue_backend': 'sqs',
                'submit_queue': 'event-queue',
                'queue_config': {'queue_name_prefix': 'jobs-'}
            }
        })

        self.assertEqual(config.queue_backend, 'sqs')
        self.assertEqual(config.submit_queue, 'event-queue')
        self.assertEqual(config.queue_config['queue_name_prefix'], 'jobs-')
        self.assertEqual(config.queue_config['concurrency_tag'], 'worker_concurrency')

    @mock.patch.dict(os.environ, {'QUEUE_BACKEND': 'kafka'}, clear=True)
    def test_unknown_backend_has_only_timeout(self):
        """Test an unknown backend still loads, leaving validation to the poll."""
        config = load_config()

        self.assertEqual(config.queue_backend, 'kafka')
        self.assertEqual(config.queue_config, {'timeout': 5.0})

    @mock.patch.dict(os.environ, {'BACKEND_TIMEOUT': '0'}, clear=True)
    def test_non_positive_timeout_rejected(self):
        """Test that a zero timeout is rejected."""
        with self.assertRaises(ValueError):
            load_config()

    @mock.patch.dict(os.environ, {'PORT': 'eighty'}, clear=True)
    def test_invalid_port_rejected(self):
        """Test that a non-numeric port is rejected."""
        with self.assertRaises(ValueError):
            load_config()


if __name__ == '__main__':
    unittest.main()
