import json
import os
import unittest
from unittest import mock

import lambda_function
from workerscale.models import ScalingDecision


class TestLambdaEntryPoint(unittest.TestCase):
    """Tests for the Lambda entry point module."""

    @mock.patch.dict(os.environ, {}, clear=True)
    @mock.patch('workerscale.main.poll')
    def test_handler_serves_expected_workers(self, mock_poll):
        """Test the handler delegates to the poll and returns the metric body."""
        mock_poll.return_value = ScalingDecision(expected_workers=6)

        response = lambda_function.handler({'config': {'queue_backend': 'redis'}}, None)

        self.assertEqual(response['statusCode'], 200)
        self.assertEqual(json.loads(response['body']), {'expected_workers': 6})
        self.assertEqual(mock_poll.call_args.args[0].queue_backend, 'redis')


if __name__ == '__main__':
    unittest.main()
