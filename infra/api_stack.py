from __future__ import annotations

from pathlib import Path
from typing import Sequence

import aws_cdk as cdk
from aws_cdk import (
    BundlingOptions,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigatewayv2 as apigwv2,
    aws_apigatewayv2_integrations as integrations,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_lambda as lambda_,
)

GSI_GOOGLE_SUB_NAME = "GSI-GoogleSub"


class ApiStack(Stack):
    def __init__(
        self,
        scope: cdk.App,
        construct_id: str,
        *,
        stage: str,
        google_client_id: str,
        allowed_origins: Sequence[str] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        project_root = Path(__file__).resolve().parent.parent
        lambdas_path = project_root / "lambdas"
        if not lambdas_path.exists():
            raise FileNotFoundError(f"Lambdas path not found: {lambdas_path}")

        table = dynamodb.Table(
            self,
            "UsersTable",
            table_name=f"{stage}-users",
            partition_key=dynamodb.Attribute(
                name="PK",
                type=dynamodb.AttributeType.STRING,
            ),
            sort_key=dynamodb.Attribute(
                name="SK",
                type=dynamodb.AttributeType.STRING,
            ),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.RETAIN,
        )
        table.add_global_secondary_index(
            index_name=GSI_GOOGLE_SUB_NAME,
            partition_key=dynamodb.Attribute(
                name="googleSub",
                type=dynamodb.AttributeType.STRING,
            ),
            projection_type=dynamodb.ProjectionType.ALL,
        )

        lambda_code = lambda_.Code.from_asset(
            path=str(project_root),
            bundling=BundlingOptions(
                image=lambda_.Runtime.PYTHON_3_12.bundling_image,
                platform="linux/arm64",
                command=[
                    "bash",
                    "-c",
                    "\n".join(
                        [
                            "set -euo pipefail",
                            "cd /asset-input",
                            "export HOME=/tmp",
                            "curl -LsSf https://astral.sh/uv/install.sh | sh",
                            'export PATH=\"$HOME/.local/bin:$HOME/.cargo/bin:$PATH\"',
                            "uv export --frozen --no-dev --no-group infra --no-emit-project --output-file requirements.txt",
                            "python -m pip install --no-compile -r requirements.txt -t /asset-output",
                            "rm -f requirements.txt",
                            "cp -r backend /asset-output/",
                            "cp -r lambdas /asset-output/",
                            "rm -rf /asset-output/backend/tests /asset-output/lambdas/tests",
                        ]
                    ),
                ],
                environment={"PIP_DISABLE_PIP_VERSION_CHECK": "1"},
                working_directory="/asset-input",
            ),
        )

        allowed_origins = list(allowed_origins or ["*"])
        allow_credentials = "*" not in allowed_origins

        common_env = {
            "GOOGLE_CLIENT_ID": google_client_id,
            "TABLE_NAME": table.table_name,
            "GSI_GOOGLE_SUB_NAME": GSI_GOOGLE_SUB_NAME,
            "STAGE": stage,
        }

        google_register_fn = lambda_.Function(
            self,
            "GoogleRegisterFunction",
            runtime=lambda_.Runtime.PYTHON_3_12,
            architecture=lambda_.Architecture.ARM_64,
            handler="lambdas/http/google_register.handler",
            code=lambda_code,
            timeout=Duration.seconds(30),
            environment=common_env,
        )

        google_login_fn = lambda_.Function(
            self,
            "GoogleLoginFunction",
            runtime=lambda_.Runtime.PYTHON_3_12,
            architecture=lambda_.Architecture.ARM_64,
            handler="lambdas/http/google_login.handler",
            code=lambda_code,
            timeout=Duration.seconds(30),
            environment=common_env,
        )

        api_fn = lambda_.Function(
            self,
            "ApiFunction",
            runtime=lambda_.Runtime.PYTHON_3_12,
            architecture=lambda_.Architecture.ARM_64,
            handler="backend.main.handler",
            code=lambda_code,
            timeout=Duration.seconds(30),
            environment={
                "STAGE": stage,
                "ALLOWED_ORIGINS": ",".join(allowed_origins),
            },
        )

        index_arn = f"{table.table_arn}/index/{GSI_GOOGLE_SUB_NAME}"
        for fn in (google_register_fn, google_login_fn):
            fn.add_to_role_policy(
                iam.PolicyStatement(
                    actions=["dynamodb:Query"],
                    resources=[index_arn],
                )
            )
        # TransactWriteItems is authorized per contained Put
        table.grant(
            google_register_fn,
            "dynamodb:PutItem",
            "dynamodb:ConditionCheckItem",
        )

        google_register_integration = integrations.HttpLambdaIntegration(
            "GoogleRegisterIntegration",
            handler=google_register_fn,
        )

        google_login_integration = integrations.HttpLambdaIntegration(
            "GoogleLoginIntegration",
            handler=google_login_fn,
        )

        api_integration = integrations.HttpLambdaIntegration(
            "ApiIntegration",
            handler=api_fn,
        )

        http_api = apigwv2.HttpApi(
            self,
            f"GoogleSignInHttpApi-{stage}",
            api_name=f"GoogleSignInHttpApi-{stage}",
            cors_preflight=apigwv2.CorsPreflightOptions(
                allow_credentials=allow_credentials,
                allow_headers=["*"],
                allow_methods=[apigwv2.CorsHttpMethod.ANY],
                allow_origins=allowed_origins,
                max_age=Duration.days(10),
            ),
        )

        http_api.add_routes(
            path="/register/google",
            methods=[apigwv2.HttpMethod.POST],
            integration=google_register_integration,
        )
        http_api.add_routes(
            path="/login/google",
            methods=[apigwv2.HttpMethod.POST],
            integration=google_login_integration,
        )
        http_api.add_routes(
            path="/health",
            methods=[apigwv2.HttpMethod.GET],
            integration=api_integration,
        )
        http_api.add_routes(
            path="/healthz",
            methods=[apigwv2.HttpMethod.GET],
            integration=api_integration,
        )

        cdk.CfnOutput(self, "ApiUrl", value=http_api.api_endpoint)
        cdk.CfnOutput(self, "UsersTableName", value=table.table_name)
