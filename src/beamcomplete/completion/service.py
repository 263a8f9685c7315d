"""
Completion service that communicates with an editor via stdio.

This service runs as a background process spawned by the editor extension
and handles completion requests. `getSuggestion` requests run on worker
threads so that a `cancelRequest` can arrive while one is in flight.
"""

import json
import sys
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, TextIO

from beamcomplete.beam.sdk import match_transforms
from beamcomplete.completion.contributor import BeamCompletionContributor
from beamcomplete.completion.parameters import CompletionParametersBuilder
from beamcomplete.completion.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    REQUEST_CANCELLED,
    CompletionRequest,
    JSONRPCMessage,
)
from beamcomplete.completion.results import CompletionResultSet
from beamcomplete.completion.session import CompletionSession
from beamcomplete.config import Config
from beamcomplete.inference.base import InferenceError
from beamcomplete.inference.huggingface_provider import HuggingFaceInferenceClient
from beamcomplete.utils.logger import logger


CANCEL_METHODS = ('cancelRequest', '$/cancelRequest')


class CompletionService:
    """
    Completion service that handles requests via JSON-RPC over stdio.
    """

    def __init__(
        self,
        contributor: BeamCompletionContributor,
        builder: Optional[CompletionParametersBuilder] = None,
        max_workers: int = 4,
        output: Optional[TextIO] = None,
    ):
        """
        Initialize completion service.

        Args:
            contributor: Contributor that fills completion variants
            builder: Parameters builder (default: shared parser)
            max_workers: Concurrent getSuggestion requests in run()
            output: Stream responses are written to (default: stdout)
        """
        self.contributor = contributor
        self.builder = builder or CompletionParametersBuilder()
        self._output = output
        self._write_lock = threading.Lock()
        self._request_executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="beamcomplete-request",
        )
        self._active_ids = Counter()          # id -> getSuggestion requests not yet answered
        self._cancelled_ids = set()
        self._state_lock = threading.Lock()
        self._stats = {
            'requests': 0,
            'matched': 0,
            'suggestions': 0,
            'errors': 0,
            'cancelled': 0,
        }
        logger.service_event(f"Completion service initialized ({contributor.session.client.model_url})")

    @property
    def session(self) -> CompletionSession:
        return self.contributor.session

    def handle_request(self, request_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Handle a JSON-RPC request.

        Args:
            request_data: Parsed JSON-RPC request

        Returns:
            Response dictionary, or None for notifications
        """
        return self._handle(request_data, queued=False)

    def _handle(self, request_data: Dict[str, Any], queued: bool) -> Optional[Dict[str, Any]]:
        method = request_data.get('method')
        params = request_data.get('params')
        request_id = request_data.get('id')

        logger.service_request(method, request_id)

        # Requests queued by run() were marked when they were read
        if method == 'getSuggestion' and not queued:
            self._mark_active(request_id)

        try:
            if params is None:
                params = {}
            elif not isinstance(params, dict):
                raise ValueError("'params' must be an object")

            if method == 'getSuggestion':
                result = self._handle_get_suggestion(params, request_id)
            elif method in CANCEL_METHODS:
                result = self._handle_cancel(params)
                if request_id is None:
                    return None
            elif method == 'getTransforms':
                result = self._handle_get_transforms(params)
            elif method == 'getStats':
                result = self._handle_get_stats()
            elif method == 'ping':
                result = {'status': 'ok'}
            else:
                return json.loads(JSONRPCMessage.error(
                    code=METHOD_NOT_FOUND,
                    message=f"Method not found: {method}",
                    id=request_id
                ))

            return json.loads(JSONRPCMessage.response(result, request_id))

        except _RequestCancelled:
            self._bump('cancelled')
            return json.loads(JSONRPCMessage.error(
                code=REQUEST_CANCELLED,
                message="Request cancelled",
                id=request_id
            ))

        except ValueError as e:
            if method in CANCEL_METHODS and request_id is None:
                return None
            return json.loads(JSONRPCMessage.error(
                code=INVALID_PARAMS,
                message=str(e),
                id=request_id
            ))

        except InferenceError as e:
            self._bump('errors')
            logger.error("SERVICE", f"Inference failed for request {request_id}", e)
            return json.loads(JSONRPCMessage.error(
                code=INTERNAL_ERROR,
                message=str(e),
                id=request_id,
                data={'type': type(e).__name__}
            ))

        except Exception as e:
            self._bump('errors')
            logger.error("SERVICE", f"Error handling request {request_id}", e)
            return json.loads(JSONRPCMessage.error(
                code=INTERNAL_ERROR,
                message=str(e),
                id=request_id
            ))

        finally:
            if method == 'getSuggestion':
                self._release(request_id)

    def _handle_get_suggestion(self, params: Dict[str, Any], request_id: Any) -> Dict[str, Any]:
        """
        Handle getSuggestion request.

        Args:
            params: Request parameters
            request_id: JSON-RPC id, also used as the session request id

        Returns:
            Suggestion result
        """
        self._bump('requests')
        self._raise_if_cancelled(request_id)

        request = CompletionRequest.from_dict(params)
        if request.offset is not None:
            parameters = self.builder.build(
                request.file_path, request.content, request.offset, request_id=request_id
            )
        else:
            parameters = self.builder.build_at(
                request.file_path,
                request.content,
                request.cursor.line,
                request.cursor.character,
                request_id=request_id,
            )

        result = CompletionResultSet(prefix=parameters.prefix)
        matched = self.contributor.fill_completion_variants(parameters, result)

        self._raise_if_cancelled(request_id)

        if matched:
            self._bump('matched')
            self._bump('suggestions', len(result))

        return {
            'matched': matched,
            'prefix': parameters.prefix,
            'suggestions': result.to_list(),
        }

    def _handle_cancel(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle cancelRequest.

        A request that is still being handled is marked cancelled whether or
        not it reached the inference session yet.
        """
        if 'id' not in params:
            raise ValueError("cancelRequest requires 'id'")
        target = params['id']

        with self._state_lock:
            active = self._active_ids[target] > 0
            if active:
                self._cancelled_ids.add(target)

        cancelled = self.session.cancel(target)
        return {'cancelled': cancelled or active}

    def _handle_get_transforms(self, params: Dict[str, Any]) -> Dict[str, Any]:
        prefix = params.get('prefix', '')
        return {'transforms': match_transforms(prefix)}

    def _handle_get_stats(self) -> Dict[str, Any]:
        with self._state_lock:
            stats = dict(self._stats)
        return {
            'requests': stats,
            'pending': self.session.pending_count,
            'model_url': self.session.client.model_url,
            'has_credentials': self.session.client.has_credentials(),
        }

    def run(self, input_stream: Optional[TextIO] = None):
        """
        Run the service loop, reading from stdin and writing to stdout.
        """
        input_stream = input_stream or sys.stdin
        logger.service_event("Starting completion service loop")

        try:
            while True:
                line = input_stream.readline()

                if not line:
                    logger.service_event("EOF received, shutting down")
                    break

                line = line.strip()
                if not line:
                    continue

                try:
                    request_data = JSONRPCMessage.parse(line)
                except json.JSONDecodeError as e:
                    logger.error("SERVICE", f"Invalid JSON: {e}")
                    self._write_raw(JSONRPCMessage.error(
                        code=PARSE_ERROR,
                        message="Parse error",
                        id=None
                    ))
                    continue

                if not isinstance(request_data, dict):
                    self._write_raw(JSONRPCMessage.error(
                        code=PARSE_ERROR,
                        message="Expected a JSON object",
                        id=None
                    ))
                    continue

                if request_data.get('method') == 'getSuggestion':
                    self._mark_active(request_data.get('id'))
                    future = self._request_executor.submit(self._handle, request_data, True)
                    future.add_done_callback(self._write_future_result)
                else:
                    self._write(self.handle_request(request_data))

        except KeyboardInterrupt:
            logger.service_event("Service interrupted by user")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """
        Stop all outstanding work and flush the responses.

        Queued and in-flight getSuggestion requests answer as cancelled; the
        session is closed first so nothing new reaches the inference endpoint.
        """
        with self._state_lock:
            self._cancelled_ids.update(self._active_ids)
        self.session.close()
        self._request_executor.shutdown(wait=True)
        logger.service_event("Completion service shut down")

    def _write_future_result(self, future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("SERVICE", "Request worker failed", error)
            return
        self._write(future.result())

    def _write(self, response: Optional[Dict[str, Any]]) -> None:
        if response is None:
            return
        self._write_raw(json.dumps(response))

    def _write_raw(self, message: str) -> None:
        output = self._output or sys.stdout
        with self._write_lock:
            output.write(message + "\n")
            output.flush()

    def _mark_active(self, request_id: Any) -> None:
        if request_id is None:
            return
        with self._state_lock:
            self._active_ids[request_id] += 1

    def _release(self, request_id: Any) -> None:
        if request_id is None:
            return
        with self._state_lock:
            self._active_ids[request_id] -= 1
            if self._active_ids[request_id] <= 0:
                del self._active_ids[request_id]
                self._cancelled_ids.discard(request_id)

    def _raise_if_cancelled(self, request_id: Any) -> None:
        with self._state_lock:
            if request_id is not None and request_id in self._cancelled_ids:
                raise _RequestCancelled()

    def _bump(self, counter: str, amount: int = 1) -> None:
        with self._state_lock:
            self._stats[counter] += amount


class _RequestCancelled(Exception):
    pass


def create_service(config: Optional[Config] = None, **kwargs) -> CompletionService:
    """Wire client, session, contributor and service from configuration."""
    config = config or Config()
    client = HuggingFaceInferenceClient(
        model=config.model,
        api_key=config.api_key,
        timeout=config.timeout,
        parameters=config.parameters(),
    )
    session = CompletionSession(client)
    contributor = BeamCompletionContributor(session, parameters=config.parameters())
    return CompletionService(contributor, **kwargs)


def main():
    """Main entry point for the completion service."""
    import argparse
    from dotenv import load_dotenv

    load_dotenv()
    config = Config()

    parser = argparse.ArgumentParser(description='beamcomplete completion service')
    parser.add_argument(
        '--model',
        default=config.model,
        help=f'Model alias, Hugging Face repo id or endpoint URL (default: {config.model})'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=config.timeout,
        help='Seconds to wait for the inference endpoint'
    )
    parser.add_argument(
        '--log-level',
        default=config.log_level,
        help='DEBUG, INFO, WARNING or ERROR'
    )

    args = parser.parse_args()
    config.model = args.model
    config.timeout = args.timeout

    logger.configure(level=args.log_level, log_dir=config.log_dir)
    logger.service_event(f"Starting beamcomplete service with model: {config.model_url}")
    if not config.api_key:
        logger.warning("SERVICE", "HF_API_KEY is not set; only transform names will be offered")

    service = create_service(config)
    service.run()


if __name__ == '__main__':
    main()
