"""
Append normalized rows to BigQuery with load jobs
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery
from google.oauth2.credentials import Credentials

from core.credentials import CredentialBroker
from core.exceptions import LoadJobError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], bigquery.Client]


class BigQueryLoader:
    """
    Load rows into an existing BigQuery table as an append-only load job.

    Ensures:
    - Rows are appended, never overwritten (WRITE_APPEND)
    - Missing tables are never created (CREATE_NEVER)
    - Any job or row error surfaces as LoadJobError
    - An empty batch never reaches BigQuery
    """

    def __init__(
        self,
        broker: CredentialBroker,
        project_id: str,
        dataset_id: str,
        client_factory: Optional[ClientFactory] = None
    ):
        self.broker = broker
        self.project_id = project_id
        self.dataset_id = dataset_id
        self.client_factory = client_factory or self._default_client

    @classmethod
    def from_settings(cls, settings, broker: CredentialBroker) -> "BigQueryLoader":
        settings.require("GOOGLE_CLOUD_PROJECT_ID", "BIGQUERY_DATASET_ID")
        return cls(
            broker=broker,
            project_id=settings.GOOGLE_CLOUD_PROJECT_ID,
            dataset_id=settings.BIGQUERY_DATASET_ID,
        )

    def table_id(self, table_name: str) -> str:
        return f"{self.project_id}.{self.dataset_id}.{table_name}"

    @staticmethod
    def job_config() -> bigquery.LoadJobConfig:
        return bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.NEWLINE_DELIMITED_JSON,
            write_disposition=bigquery.WriteDisposition.WRITE_APPEND,
            create_disposition=bigquery.CreateDisposition.CREATE_NEVER,
            autodetect=False,
        )

    async def load(self, table_name: str, rows: Sequence[Dict[str, Any]]) -> int:
        """
        Append rows to `table_name`.

        Args:
            table_name: Destination table inside the configured dataset
            rows: JSON-ready records whose keys match the table columns

        Returns:
            Number of rows loaded

        Raises:
            LoadJobError: If BigQuery rejects the job or reports row errors
            CredentialExchangeError: If no access token could be obtained
        """
        if not rows:
            return 0

        token = await self.broker.get_access_token()
        table_id = self.table_id(table_name)

        # The BigQuery client is blocking; keep it off the event loop
        job = await asyncio.to_thread(self._run_load_job, token, table_id, list(rows))

        output_rows = getattr(job, "output_rows", None)
        loaded = output_rows if isinstance(output_rows, int) else len(rows)
        logger.info(f"Load job {job.job_id} appended {loaded} rows to {table_id}")
        return loaded

    def _run_load_job(self, token: str, table_id: str, rows: List[Dict[str, Any]]):
        client = self.client_factory(token)
        job = None
        try:
            job = client.load_table_from_json(
                rows,
                table_id,
                job_config=self.job_config(),
                job_id_prefix=f"ingest_{table_id.rsplit('.', 1)[-1]}_",
            )
            job.result()
        except GoogleAPIError as e:
            errors = getattr(job, "errors", None) or getattr(e, "errors", None) or []
            raise LoadJobError(
                f"Load job failed for {table_id}",
                errors=list(errors),
                context={"table_id": table_id, "rows": len(rows)},
                original_exception=e
            )
        finally:
            client.close()

        if job.errors:
            raise LoadJobError(
                f"Load job {job.job_id} reported errors for {table_id}",
                errors=list(job.errors),
                context={"table_id": table_id, "rows": len(rows)}
            )

        return job

    def _default_client(self, token: str) -> bigquery.Client:
        return bigquery.Client(project=self.project_id, credentials=Credentials(token=token))
