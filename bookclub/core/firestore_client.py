"""
Firestore 客户端工具模块

通过 firebase-admin 获取异步 Firestore 客户端，供热度流水线各仓储使用。
"""

from __future__ import annotations

import inspect
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from loguru import logger

from bookclub.core.config import settings


class FirestoreClient:
    """Firestore 异步客户端封装"""

    def __init__(self):
        self._client: Optional[object] = None

    async def connect(self):
        """初始化 Firebase App 并获取 AsyncClient（重复调用安全）"""
        if self._client is not None:
            return
        try:
            app = firebase_admin.get_app()
        except ValueError:
            options = {"projectId": settings.FIRESTORE_PROJECT_ID} if settings.FIRESTORE_PROJECT_ID else None
            cred = (
                credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
                if settings.FIREBASE_CREDENTIALS_FILE
                else credentials.ApplicationDefault()
            )
            app = firebase_admin.initialize_app(cred, options)

        self._client = firestore_async.client(app)
        logger.info(f"✅ Firestore 客户端初始化完成: project={app.project_id}")

    async def close(self):
        """关闭底层 gRPC 通道并释放客户端"""
        if self._client is not None:
            result = self._client.close()
            if inspect.isawaitable(result):
                await result
            self._client = None
            logger.info("Firestore 连接已关闭")

    @property
    def client(self):
        """获取 Firestore AsyncClient 实例"""
        if self._client is None:
            raise RuntimeError("Firestore 客户端未初始化，请先调用 connect()")
        return self._client


# 全局 Firestore 客户端实例
firestore_client = FirestoreClient()


async def get_firestore_client() -> FirestoreClient:
    """FastAPI 依赖注入"""
    return firestore_client
