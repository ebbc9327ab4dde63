"""
Reserve Gateway service: Kafka-driven deposits, redemptions and block updates.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from pydantic import ValidationError

from reservegate.config import Settings, settings as default_settings
from reservegate.logging import get_logger, trace_context
from reservegate.shared.conversion_models import ReserveState
from reservegate.shared.gateway_errors import GatewayError

from .gateway import ReserveGateway
from .metrics import MetricsCollector
from .models import DepositRequest, RedemptionRequest
from .pool import InMemoryReservePool, ManualBlockClock
from .storage import create_storage

logger = get_logger(__name__)


class GatewayService:
    """Service wiring the reserve gateway to Kafka."""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        gateway_settings = self.settings.gateway

        self.pool = InMemoryReservePool(
            ReserveState(
                total_base_balance=gateway_settings.initial_base_balance,
                total_wrapped_supply=gateway_settings.initial_wrapped_supply,
                deposit_fee_rate=gateway_settings.deposit_fee_rate,
                deposits_enabled=gateway_settings.deposits_enabled,
                max_deposit_amount=gateway_settings.max_deposit_amount,
                deposit_delay_blocks=gateway_settings.deposit_delay_blocks,
            )
        )
        self.clock = ManualBlockClock(gateway_settings.start_block)
        self.store = create_storage(gateway_settings.storage_type, gateway_settings.redis_url)
        self.metrics = MetricsCollector()

        self.gateway = ReserveGateway(
            oracle=self.pool,
            sink=self.pool,
            token=self.pool,
            clock=self.clock,
            records=self.store,
            gateway_address=gateway_settings.gateway_address,
            max_history=gateway_settings.max_history,
            metrics=self.metrics,
        )

        # Kafka clients
        self.consumer: Optional[AIOKafkaConsumer] = None
        self.producer: Optional[AIOKafkaProducer] = None

        # Service state
        self.running = False
        self.messages_processed = 0

    async def start(self):
        """Start the gateway service."""
        kafka = self.settings.kafka
        logger.info("Starting Reserve Gateway service...")

        self.consumer = AIOKafkaConsumer(
            kafka.topic_deposit_requests,
            kafka.topic_redemption_requests,
            kafka.topic_chain_blocks,
            bootstrap_servers=kafka.bootstrap_servers,
            group_id=kafka.consumer_group,
            value_deserializer=lambda v: json.loads(v.decode('utf-8'))
        )

        self.producer = AIOKafkaProducer(
            bootstrap_servers=kafka.bootstrap_servers,
            value_serializer=lambda v: json.dumps(v, default=str).encode('utf-8')
        )

        await self.consumer.start()
        await self.producer.start()

        self.running = True
        await self.process_messages()

    async def process_messages(self):
        """Process incoming Kafka messages one at a time, in arrival order."""
        kafka = self.settings.kafka
        async for msg in self.consumer:
            if not self.running:
                break

            try:
                if msg.topic == kafka.topic_deposit_requests:
                    await self.handle_deposit_request(msg.value)
                elif msg.topic == kafka.topic_redemption_requests:
                    await self.handle_redemption_request(msg.value)
                elif msg.topic == kafka.topic_chain_blocks:
                    await self.handle_block_update(msg.value)
                self.messages_processed += 1

            except Exception as e:
                self.metrics.record_message(msg.topic, 'error')
                logger.error(f"Error processing message from {msg.topic}: {e}")

    async def handle_deposit_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Handle a deposit request message."""
        topic = self.settings.kafka.topic_deposit_requests
        try:
            request = DepositRequest(**data)
        except ValidationError as e:
            return await self._publish_invalid(topic, data, e)

        with trace_context(request.request_id):
            try:
                receipt = self.gateway.deposit_base_for_wrapped(request.account, request.amount)
            except GatewayError as e:
                result = self._rejection('deposit', request.account, request.request_id, e)
                self.metrics.record_message(topic, 'rejected')
            else:
                result = {
                    'success': True,
                    'request_id': request.request_id,
                    **receipt.model_dump(mode='json'),
                }
                self.metrics.record_message(topic, 'success')

            await self.publish_result(result)
            return result

    async def handle_redemption_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Handle a redemption request message."""
        topic = self.settings.kafka.topic_redemption_requests
        try:
            request = RedemptionRequest(**data)
        except ValidationError as e:
            return await self._publish_invalid(topic, data, e)

        with trace_context(request.request_id):
            try:
                receipt = self.gateway.redeem_wrapped_for_base(
                    request.account, request.wrapped_amount
                )
            except GatewayError as e:
                result = self._rejection('redemption', request.account, request.request_id, e)
                self.metrics.record_message(topic, 'rejected')
            else:
                result = {
                    'success': True,
                    'request_id': request.request_id,
                    **receipt.model_dump(mode='json'),
                }
                self.metrics.record_message(topic, 'success')

            await self.publish_result(result)
            return result

    async def handle_block_update(self, data: Dict[str, Any]):
        """Advance the block clock from a chain block event."""
        block_number = int(data.get('block_number', 0))
        if block_number <= self.clock.current_block():
            # Replayed or stale block; height never goes backwards
            return

        self.clock.advance_to(block_number)
        self.metrics.update_block(block_number)
        self.metrics.record_message(self.settings.kafka.topic_chain_blocks, 'success')

    async def publish_result(self, result: Dict[str, Any]):
        """Publish a conversion result."""
        if not self.producer:
            logger.debug("No producer; conversion result not published")
            return

        await self.producer.send_and_wait(
            self.settings.kafka.topic_conversion_results,
            value={'timestamp': datetime.utcnow().isoformat(), **result}
        )

    async def _publish_invalid(self, topic: str, data: Dict[str, Any], error: ValidationError):
        logger.warning(f"Invalid request on {topic}: {error.error_count()} validation error(s)")
        self.metrics.record_message(topic, 'invalid')
        result = {
            'success': False,
            'request_id': data.get('request_id') if isinstance(data, dict) else None,
            'error': 'ValidationError',
            'message': str(error),
        }
        await self.publish_result(result)
        return result

    @staticmethod
    def _rejection(operation: str, account: str, request_id: Optional[str], error: GatewayError):
        return {
            'success': False,
            'operation': operation,
            'account': account,
            'request_id': request_id,
            'error': type(error).__name__,
            'message': str(error),
        }

    async def stop(self):
        """Stop the gateway service."""
        logger.info("Stopping Reserve Gateway service...")
        self.running = False

        if self.consumer:
            await self.consumer.stop()
        if self.producer:
            await self.producer.stop()

    def get_current_state(self) -> Dict[str, Any]:
        """Get current service state."""
        return {
            'reserve_state': self.gateway.read_reserve_state().model_dump(),
            'gateway_metrics': self.gateway.get_gateway_metrics(),
            'messages_processed': self.messages_processed,
            'recent_conversions': [
                r.model_dump(mode='json') for r in self.gateway.get_recent_conversions(5)
            ],
        }

