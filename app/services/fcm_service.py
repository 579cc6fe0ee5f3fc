import os
import json
import logging
from typing import List, Dict, Optional
from firebase_admin import credentials, messaging, initialize_app
from firebase_admin.exceptions import FirebaseError

from app.config import FIREBASE_CONFIG, FIREBASE_CONFIG_PATH

logger = logging.getLogger(__name__)

# Códigos de error de FCM que indican que el token ya no sirve
INVALID_TOKEN_CODES = {"NOT_FOUND", "INVALID_ARGUMENT", "UNREGISTERED"}


class FCMService:
    def __init__(self):
        self.app = None
        self._initialized = False

    def _initialize_firebase(self):
        """Inicializa Firebase Admin SDK la primera vez que se necesita"""
        if self._initialized:
            return
        self._initialized = True

        try:
            # Opción 1: JSON completo en la variable de entorno
            if FIREBASE_CONFIG:
                config_dict = json.loads(FIREBASE_CONFIG)
            # Opción 2: archivo de cuenta de servicio
            elif FIREBASE_CONFIG_PATH and os.path.exists(FIREBASE_CONFIG_PATH):
                logger.info(f"Loading Firebase config from file: {FIREBASE_CONFIG_PATH}")
                with open(FIREBASE_CONFIG_PATH, "r") as f:
                    config_dict = json.load(f)
            else:
                logger.warning(
                    "FIREBASE_CONFIG not set and no service account file found, "
                    "push notifications disabled"
                )
                return

            cred = credentials.Certificate(config_dict)
            self.app = initialize_app(cred)
            logger.info("Firebase Admin SDK initialized successfully")

        except (ValueError, OSError) as e:
            logger.error(f"Failed to initialize Firebase Admin SDK: {e}")
            self.app = None

    def is_configured(self) -> bool:
        """Verifica si FCM está configurado correctamente"""
        self._initialize_firebase()
        return self.app is not None

    def send_to_tokens(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, object]:
        """
        Envía una notificación push a múltiples tokens.

        Returns:
            Diccionario con success, failure e invalid_tokens (tokens a desactivar)

        Raises:
            FirebaseError: si falla el envío completo; el llamador decide si reintenta
        """
        if not tokens:
            return {"success": 0, "failure": 0, "invalid_tokens": []}

        if not self.is_configured():
            logger.debug("FCM not configured, skipping push")
            return {"success": 0, "failure": 0, "invalid_tokens": []}

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            data=data or {},
            tokens=tokens,
            apns=messaging.APNSConfig(
                headers={"apns-priority": "10"},
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(sound="default", content_available=True),
                ),
            ),
        )

        response = messaging.send_each_for_multicast(message)
        logger.info(
            f"Push sent: {response.success_count} ok, {response.failure_count} failed"
        )

        invalid_tokens = []
        for i, resp in enumerate(response.responses):
            if resp.success or resp.exception is None:
                continue
            error_code = getattr(resp.exception, "code", None)
            logger.error(f"Failed to send to token {tokens[i][:20]}...: {resp.exception}")
            if error_code in INVALID_TOKEN_CODES:
                invalid_tokens.append(tokens[i])

        return {
            "success": response.success_count,
            "failure": response.failure_count,
            "invalid_tokens": invalid_tokens,
        }


# Instancia global del servicio
fcm_service = FCMService()
