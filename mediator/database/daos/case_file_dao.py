"""
Case File DAO

Data-access layer for uploaded-file metadata (`CaseFile`). The object bytes
live in S3; only the key and descriptive fields are stored here.
"""

from sqlalchemy.orm import Session
from sqlalchemy import desc
from mediator.database.entities.case_files import CaseFile
from uuid import UUID
from typing import List
import logging

logger = logging.getLogger(__name__)


class CaseFileDao:
    """
    Data Access Object (DAO) for case files.
    """

    def createCaseFile(self, session: Session, case_file: CaseFile) -> CaseFile:
        try:
            session.add(case_file)
            return case_file
        except Exception as e:
            logger.error(f"Error in CaseFileDao.createCaseFile. Error: {e}")
            raise e

    def fetchFilesByCaseId(self, session: Session, case_id: UUID) -> List[CaseFile]:
        """Fetch the files of a case, most recent upload first."""
        try:
            return (
                session.query(CaseFile)
                .filter(CaseFile.case_id == case_id)
                .order_by(desc(CaseFile.uploaded_at))
                .all()
            )
        except Exception as e:
            logger.error(f"Error in CaseFileDao.fetchFilesByCaseId. Error: {e}")
            raise e
