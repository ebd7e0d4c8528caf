import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/broker_db")

# Application Metadata
PROJECT_NAME = "Broker Message Deduplication Service"
VERSION = "1.0.0"

# Retention Sweeper Configuration
RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", 7)) # Ledger rows older than this are swept
CLEANUP_CRON_HOUR = int(os.getenv("CLEANUP_CRON_HOUR", 0)) # Daily sweep runs at HH:MM
CLEANUP_CRON_MINUTE = int(os.getenv("CLEANUP_CRON_MINUTE", 0))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "UTC")

# Broker Simulation Configuration
MAX_DELIVERY_ATTEMPTS = int(os.getenv("MAX_DELIVERY_ATTEMPTS", 3)) # Deliveries per queue before dead-lettering

# Exchanges
FANOUT_EXCHANGE = os.getenv("FANOUT_EXCHANGE", "fanout.exchange")
TOPIC_EXCHANGE = os.getenv("TOPIC_EXCHANGE", "topic.exchange")

# Fanout queues (every queue receives every broadcast)
FANOUT_EMAIL_QUEUE = "fanout.queue.notification1"
FANOUT_SMS_QUEUE = "fanout.queue.notification2"
FANOUT_PUSH_QUEUE = "fanout.queue.notification3"

# Topic queues and their binding patterns
TOPIC_ORDERS_QUEUE = "topic.queue.orders"
TOPIC_ERRORS_QUEUE = "topic.queue.errors"
TOPIC_ALL_QUEUE = "topic.queue.all"

ORDERS_BINDING = "order.*"
ERRORS_BINDING = "*.error"
ALL_EVENTS_BINDING = "#"

FANOUT_QUEUES = [FANOUT_EMAIL_QUEUE, FANOUT_SMS_QUEUE, FANOUT_PUSH_QUEUE]
TOPIC_QUEUES = [TOPIC_ORDERS_QUEUE, TOPIC_ERRORS_QUEUE, TOPIC_ALL_QUEUE]
ALL_QUEUES = TOPIC_QUEUES + FANOUT_QUEUES
